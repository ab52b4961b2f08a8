"""Decoder for chat-next-web-store export files."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from chatexport.core.errors import ExportSyntaxError, FormatError, OutputError
from chatexport.core.models import STORE_KEY, Envelope, Store

logger = logging.getLogger(__name__)

# json.loads pairs valid surrogate escapes, so any left over are lone halves
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")

REPLACEMENT_CHARACTER = "\ufffd"


def _replace_lone_surrogates(node: object) -> object:
    """Replace unpaired surrogates in every string of a JSON tree.

    Browsers can emit them for a truncated emoji. They decode fine but cannot
    be encoded to any output, so each one becomes U+FFFD.
    """
    if isinstance(node, str):
        return _LONE_SURROGATE.sub(REPLACEMENT_CHARACTER, node)
    if isinstance(node, list):
        return [_replace_lone_surrogates(item) for item in node]
    if isinstance(node, dict):
        return {
            _replace_lone_surrogates(key): _replace_lone_surrogates(value)
            for key, value in node.items()
        }
    return node


def load_json(data: bytes | str) -> object:
    """Parse raw export bytes into a generic JSON tree.

    Lone surrogate escapes are replaced with U+FFFD. Raises ExportSyntaxError
    if the input is not valid JSON.
    """
    try:
        tree = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ExportSyntaxError(f"invalid JSON: {e}") from e
    return _replace_lone_surrogates(tree)


def unwrap_sessions(tree: object) -> list:
    """Return the raw ``sessions`` list of an envelope tree.

    Raises FormatError when the JSON is valid but not shaped like an export:
    the top level is not an object, the ``chat-next-web-store`` key is
    missing, or its ``sessions`` field is missing or null.
    """
    if not isinstance(tree, dict) or not isinstance(tree.get(STORE_KEY), dict):
        raise FormatError(f"JSON does not match the expected format {STORE_KEY}")
    sessions = tree[STORE_KEY].get("sessions")
    if not isinstance(sessions, list):
        raise FormatError(f"JSON does not match the expected format {STORE_KEY}: missing sessions")
    return sessions


def decode(data: bytes | str) -> Store:
    """Decode export bytes into a Store.

    Raises:
        ExportSyntaxError: the input is not JSON, or a field has a JSON type
            the model cannot accept.
        FormatError: the JSON is valid but the envelope is wrong.
    """
    tree = load_json(data)
    unwrap_sessions(tree)

    try:
        envelope = Envelope.model_validate(tree)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ExportSyntaxError(f"cannot decode field {location}: {first['msg']}") from e

    store = envelope.store
    logger.debug("Decoded %d sessions", len(store.sessions))
    return store


def read_export(path: str | Path, encoding: str = "utf-8") -> str:
    """Read an export file as text in the given encoding.

    Raises OutputError if the file cannot be read and ExportSyntaxError if
    its bytes are not valid in *encoding*.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise OutputError(path, e) from e
    logger.debug("Read %d bytes from %s", len(data), path)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise ExportSyntaxError(f"{path} is not valid {encoding}: {e}") from e


def read_store(path: str | Path, encoding: str = "utf-8") -> Store:
    """Read and decode an export file.

    Raises the errors of :func:`read_export` and :func:`decode`.
    """
    return decode(read_export(path, encoding))
