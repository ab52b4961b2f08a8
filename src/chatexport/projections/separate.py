"""Separate-files projection: a sessions table and a messages table."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from chatexport.core.models import Session
from chatexport.projections.base import CSVFormat, ProjectionResult, TabularResult
from chatexport.projections.tabular import PerLineProjection, SessionsProjection

if TYPE_CHECKING:
    from chatexport.core.cancel import CancellationToken
    from chatexport.core.logging import ExportLogger


class SeparateFilesProjection:
    """Writes session metadata and messages to two independent destinations.

    The messages table uses the per-line layout. The two files are written
    one after the other; nothing is rolled back if the second one fails.
    """

    name = "separate"

    def __init__(self) -> None:
        self.sessions = SessionsProjection()
        self.messages = PerLineProjection()

    def project(
        self,
        sessions: Sequence[Session],
        *,
        cancel: CancellationToken | None = None,
    ) -> TabularResult:
        result = TabularResult(format=CSVFormat.SEPARATE_FILES)
        sessions_table, stats = self.sessions.table(sessions, cancel=cancel)
        result.tables["sessions"] = sessions_table
        result.sessions = stats.sessions
        if stats.cancelled:
            result.cancelled = True
            return result

        messages_table, stats = self.messages.table(sessions, cancel=cancel)
        result.tables["messages"] = messages_table
        result.sessions = min(result.sessions, stats.sessions)
        result.cancelled = stats.cancelled
        return result

    def write_files(
        self,
        sessions: Sequence[Session],
        sessions_path: str | Path,
        messages_path: str | Path,
        *,
        cancel: CancellationToken | None = None,
        export_logger: ExportLogger | None = None,
        encoding: str = "utf-8",
    ) -> ProjectionResult:
        """Write the sessions file, then the messages file.

        A cancellation observed while writing the sessions file stops the
        run before the messages file is created.
        """
        result = ProjectionResult(format=CSVFormat.SEPARATE_FILES)

        stats = self.sessions.write_file(
            sessions, sessions_path, cancel=cancel, export_logger=export_logger, encoding=encoding,
        )
        result.locations.append(str(sessions_path))
        result.rows_written[str(sessions_path)] = stats.rows
        result.sessions = stats.sessions
        if stats.cancelled:
            result.cancelled = True
            return result

        stats = self.messages.write_file(
            sessions, messages_path, cancel=cancel, export_logger=export_logger, encoding=encoding,
        )
        result.locations.append(str(messages_path))
        result.rows_written[str(messages_path)] = stats.rows
        result.sessions = min(result.sessions, stats.sessions)
        result.cancelled = stats.cancelled
        return result
