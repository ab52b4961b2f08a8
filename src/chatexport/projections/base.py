"""Base projection interface and result types."""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING

from chatexport.core.errors import OutputError
from chatexport.core.models import Session

if TYPE_CHECKING:
    from chatexport.core.cancel import CancellationToken
    from chatexport.core.logging import ExportLogger

logger = logging.getLogger(__name__)

SESSION_HEADERS = ("id", "topic", "memoryPrompt")
MESSAGE_HEADERS = ("session_id", "message_id", "date", "role", "content", "memoryPrompt")

Row = list[str]


class CSVFormat(IntEnum):
    """Message layouts for CSV output, numbered as offered in the CLI."""

    INLINE = 1
    PER_LINE = 2
    JSON_EMBED = 3
    SEPARATE_FILES = 4


@dataclass
class Table:
    """An in-memory table: header plus data rows."""

    header: list[str]
    rows: list[Row] = field(default_factory=list)


@dataclass
class TabularResult:
    """Result of projecting sessions in memory."""

    format: CSVFormat
    tables: dict[str, Table] = field(default_factory=dict)
    sessions: int = 0
    cancelled: bool = False


@dataclass
class ProjectionResult:
    """Result of writing sessions to one or more CSV files.

    ``cancelled`` is set when a cancellation was observed before every
    session was written; the rows counted here are on disk regardless.
    """

    format: CSVFormat
    locations: list[str] = field(default_factory=list)
    rows_written: dict[str, int] = field(default_factory=dict)
    sessions: int = 0
    cancelled: bool = False

    @property
    def rows(self) -> int:
        return sum(self.rows_written.values())


@dataclass
class PassStats:
    """Counters for one pass over the sessions."""

    sessions: int = 0
    rows: int = 0
    cancelled: bool = False


def csv_writer(handle):
    """CSV writer used for every output: minimal quoting, CRLF row terminator.

    The writer quotes any field containing a character of the terminator, so
    CRLF makes both bare ``\\r`` and ``\\n`` inside a field get quoted.
    """
    return csv.writer(handle, lineterminator="\r\n")


class BaseProjection(ABC):
    """Flattens sessions into rows under a fixed header."""

    name: str = ""
    headers: Sequence[str] = ()

    @abstractmethod
    def rows(self, session: Session) -> Iterator[Row]:
        """Yield the data rows for a single session, in message order."""
        ...

    def run(
        self,
        sessions: Iterable[Session],
        emit: Callable[[Row], object],
        *,
        cancel: CancellationToken | None = None,
        on_session: Callable[[Session, int], None] | None = None,
    ) -> PassStats:
        """Emit data rows for each session until done or cancelled.

        The token is checked once per session, before any of that session's
        rows are produced, so a session is always emitted whole.
        """
        stats = PassStats()
        for session in sessions:
            if cancel is not None and cancel.cancelled:
                logger.info("%s: cancelled after %d sessions", self.name, stats.sessions)
                stats.cancelled = True
                break
            rows = list(self.rows(session))
            for row in rows:
                emit(row)
            stats.sessions += 1
            stats.rows += len(rows)
            if on_session is not None:
                on_session(session, len(rows))
        return stats

    def table(
        self,
        sessions: Iterable[Session],
        *,
        cancel: CancellationToken | None = None,
    ) -> tuple[Table, PassStats]:
        """Project sessions into an in-memory Table."""
        table = Table(header=list(self.headers))
        stats = self.run(sessions, table.rows.append, cancel=cancel)
        return table, stats

    def write_file(
        self,
        sessions: Iterable[Session],
        output_path: str | Path,
        *,
        cancel: CancellationToken | None = None,
        export_logger: ExportLogger | None = None,
        encoding: str = "utf-8",
    ) -> PassStats:
        """Write the header and all data rows to *output_path*.

        The file is created (or truncated) before the first session. Rows
        already written stay on disk if a later session fails or the run is
        cancelled.
        """
        output_path = Path(output_path)
        name = str(output_path)

        on_session = None
        if export_logger is not None:
            export_logger.output_start(name, self.name)

            def on_session(session: Session, count: int) -> None:
                export_logger.session_written(name, session.id, count)

        try:
            with open(output_path, "w", newline="", encoding=encoding) as handle:
                writer = csv_writer(handle)
                writer.writerow(self.headers)
                stats = self.run(sessions, writer.writerow, cancel=cancel, on_session=on_session)
        except (OSError, UnicodeError) as e:
            raise OutputError(output_path, e) from e

        if export_logger is not None:
            export_logger.output_finish(name, cancelled=stats.cancelled)
        logger.debug("Wrote %d rows to %s", stats.rows, output_path)
        return stats
