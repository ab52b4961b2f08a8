"""Add a missing ``systemprompt`` to each session's model config.

Older exports lack ``mask.modelConfig.systemprompt``. The repair works on the
generic JSON tree rather than the typed model, so every field it does not
touch (including ones the model knows nothing about) is written back
unchanged and in its original position.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from chatexport.decode import load_json, unwrap_sessions

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_KEY = "systemprompt"

# Placeholders are left for the chat client to expand.
DEFAULT_SYSTEM_PROMPT = (
    "\nYou are ChatGPT, a large language model trained by OpenAI.\n"
    "Knowledge cutoff: {{cutoff}}\n"
    "Current model: {{model}}\n"
    "Current time: {{time}}\n"
    "Latex inline: $x^2$ \n"
    "Latex block: $$e=mc^2$$\n"
)


def _system_prompt_key(model_config: dict) -> str | None:
    """Return the existing key holding the system prompt, matched case-insensitively."""
    for key in model_config:
        if key.lower() == SYSTEM_PROMPT_KEY:
            return key
    return None


def patch_session(session: object) -> bool:
    """Insert the default system prompt into one session if it is missing.

    Only sessions with an object ``mask`` holding an object ``modelConfig``
    are eligible. Returns True if the session was changed.
    """
    if not isinstance(session, dict):
        return False
    mask = session.get("mask")
    if not isinstance(mask, dict):
        return False
    model_config = mask.get("modelConfig")
    if not isinstance(model_config, dict):
        return False

    key = _system_prompt_key(model_config)
    if key is not None and model_config[key] is not None:
        return False

    model_config[key or SYSTEM_PROMPT_KEY] = {"default": DEFAULT_SYSTEM_PROMPT}
    return True


def repair_tree(tree: object) -> int:
    """Patch every session of a decoded export tree in place.

    Returns the number of sessions patched. Raises FormatError if the tree is
    not shaped like an export.
    """
    sessions = unwrap_sessions(tree)
    patched = 0
    for index, session in enumerate(sessions):
        if patch_session(session):
            logger.debug("Added %s to session %d", SYSTEM_PROMPT_KEY, index)
            patched += 1
    logger.info("Repaired %d of %d sessions", patched, len(sessions))
    return patched


def dump_tree(tree: object) -> bytes:
    """Serialize a tree deterministically with 2-space indentation."""
    return json.dumps(tree, indent=2, ensure_ascii=False).encode("utf-8")


def repair_with_count(data: bytes | str) -> tuple[bytes, int]:
    """Repair export bytes, also returning how many sessions were patched."""
    tree = load_json(data)
    patched = repair_tree(tree)
    return dump_tree(tree), patched


def repair(data: bytes | str) -> bytes:
    """Repair export bytes and return the re-serialized document.

    Raises ExportSyntaxError on malformed JSON and FormatError if the
    document is not a chat-next-web-store export. Repairing an already
    repaired document returns identical bytes.
    """
    repaired, _ = repair_with_count(data)
    return repaired


def repaired_path(path: str | Path, prefix: str = "repaired_") -> Path:
    """Output path for a repaired file: same directory, prefixed file name."""
    path = Path(path)
    return path.with_name(f"{prefix}{path.name}")
