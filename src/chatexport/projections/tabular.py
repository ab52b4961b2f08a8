"""Single-table CSV projections."""

from __future__ import annotations

import json
from collections.abc import Iterator

from chatexport.core.models import Message, Session
from chatexport.projections.base import (
    MESSAGE_HEADERS,
    SESSION_HEADERS,
    BaseProjection,
    Row,
)

INLINE_SEPARATOR = "; "


def format_inline_message(message: Message) -> str:
    """Render one message as ``[role, date] "content"``."""
    return f'[{message.role}, {message.date}] "{message.content}"'


def messages_to_json(messages: list[Message]) -> str:
    """Compact JSON array of messages, re-parseable into the same list."""
    return json.dumps(
        [message.model_dump(mode="json", by_alias=True) for message in messages],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class InlineProjection(BaseProjection):
    """One row per session with all messages joined into a single cell."""

    name = "inline"
    headers = (*SESSION_HEADERS, "messages")

    def rows(self, session: Session) -> Iterator[Row]:
        inline = INLINE_SEPARATOR.join(format_inline_message(m) for m in session.messages)
        yield [session.id, session.topic, session.memory_prompt, inline]


class PerLineProjection(BaseProjection):
    """One row per message; sessions without messages produce no rows."""

    name = "per-line"
    headers = MESSAGE_HEADERS

    def rows(self, session: Session) -> Iterator[Row]:
        for message in session.messages:
            yield [
                session.id,
                message.id,
                message.date,
                message.role,
                message.content,
                session.memory_prompt,
            ]


class JSONEmbedProjection(BaseProjection):
    """One row per session with the message list embedded as JSON."""

    name = "json"
    headers = (*SESSION_HEADERS, "messages")

    def rows(self, session: Session) -> Iterator[Row]:
        yield [session.id, session.topic, session.memory_prompt, messages_to_json(session.messages)]


class SessionsProjection(BaseProjection):
    """Session metadata only; the sessions half of the separate-files layout."""

    name = "sessions"
    headers = SESSION_HEADERS

    def rows(self, session: Session) -> Iterator[Row]:
        yield [session.id, session.topic, session.memory_prompt]
