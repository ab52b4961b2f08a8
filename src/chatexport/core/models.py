"""Core data models for chat-next-web-store exports.

Field names are snake_case in Python and camelCase on the wire; the aliases
are used both when decoding an export and when serializing a dataset. Scalar
fields are strict: a JSON number is never read as a string or the reverse,
and booleans and floats are not accepted as integers.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    model_validator,
)

STORE_KEY = "chat-next-web-store"


def _coerce_flexible_id(value: object) -> str:
    """Accept a JSON string or integer and normalize it to a string.

    Identifiers changed representation between export versions, so both
    forms decode to the same opaque string. Booleans are rejected even though
    Python treats them as ints.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"expected a string or integer identifier, got {type(value).__name__}")


FlexibleID = Annotated[str, BeforeValidator(_coerce_flexible_id)]


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _null_means_absent(cls, data: object) -> object:
        # A JSON null leaves the field at its zero value.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Message(_ExportModel):
    """A single turn in a session."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: StrictStr = ""
    date: StrictStr = ""  # free-form display timestamp, never parsed
    role: StrictStr = ""
    content: StrictStr = ""


class Stat(_ExportModel):
    """Denormalized counters, carried through as-is."""

    token_count: StrictInt = Field(default=0, alias="tokenCount")
    word_count: StrictInt = Field(default=0, alias="wordCount")
    char_count: StrictInt = Field(default=0, alias="charCount")


class Mask(_ExportModel):
    """Persona metadata attached to a session."""

    id: FlexibleID = ""
    avatar: StrictStr = ""
    name: StrictStr = ""
    lang: StrictStr = ""
    created_at: StrictInt = Field(default=0, alias="createdAt")  # unix ms


class Session(_ExportModel):
    """One chat conversation with its ordered messages."""

    id: StrictStr = ""
    topic: StrictStr = ""
    memory_prompt: StrictStr = Field(default="", alias="memoryPrompt")
    stat: Stat = Field(default_factory=Stat)
    last_update: StrictInt = Field(default=0, alias="lastUpdate")  # unix ms
    last_summarize_index: StrictInt = Field(default=0, alias="lastSummarizeIndex")
    mask: Mask = Field(default_factory=Mask)
    messages: list[Message] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Serialize using the export's field names, in export order."""
        return self.model_dump(mode="json", by_alias=True)


class Store(_ExportModel):
    """Top-level session collection, in source order."""

    sessions: list[Session]


class Envelope(_ExportModel):
    """The single-key wrapper around a Store found in export files."""

    store: Store = Field(alias=STORE_KEY)
