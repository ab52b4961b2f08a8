"""Wrap sessions in a ``{"dataset": [...]}`` dataset document."""

from __future__ import annotations

import json
from collections.abc import Sequence

from chatexport.core.models import Session

DATASET_KEY = "dataset"


def extract_to_dataset(sessions: Sequence[Session]) -> str:
    """Serialize sessions, in order, as an indented dataset document.

    Field names and order follow the export format, so the result can be
    decoded back into the same sessions.
    """
    dataset = {DATASET_KEY: [session.to_json_dict() for session in sessions]}
    return json.dumps(dataset, indent=2, ensure_ascii=False)
