"""Flatten sessions into CSV tables.

Maps each CSVFormat to a projection class. Single-table formats go through
:func:`convert_sessions_to_csv`; the two-table layout goes through
:func:`create_separate_csv_files`. :func:`project` does either in memory.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Union

from chatexport.core.errors import InvalidFormatError
from chatexport.core.models import Session
from chatexport.projections.base import (
    MESSAGE_HEADERS,
    SESSION_HEADERS,
    BaseProjection,
    CSVFormat,
    ProjectionResult,
    Table,
    TabularResult,
)
from chatexport.projections.separate import SeparateFilesProjection
from chatexport.projections.tabular import (
    InlineProjection,
    JSONEmbedProjection,
    PerLineProjection,
    SessionsProjection,
)

if TYPE_CHECKING:
    from chatexport.core.cancel import CancellationToken
    from chatexport.core.logging import ExportLogger

AnyProjection = Union[BaseProjection, SeparateFilesProjection]

# Registry: format -> projection factory
_PROJECTIONS: dict[CSVFormat, Callable[[], AnyProjection]] = {}

_FORMAT_NAMES = {
    "inline": CSVFormat.INLINE,
    "per-line": CSVFormat.PER_LINE,
    "perline": CSVFormat.PER_LINE,
    "json": CSVFormat.JSON_EMBED,
    "json-embed": CSVFormat.JSON_EMBED,
    "separate": CSVFormat.SEPARATE_FILES,
    "separate-files": CSVFormat.SEPARATE_FILES,
}


def register_projection(fmt: CSVFormat):
    """Decorator to register a projection class for a CSV format.

    Usage::

        @register_projection(CSVFormat.INLINE)
        class InlineProjection(BaseProjection):
            ...
    """

    def decorator(factory: Callable[[], AnyProjection]):
        _PROJECTIONS[fmt] = factory
        return factory

    return decorator


def parse_format(value: object) -> CSVFormat:
    """Resolve a format selector from the CLI or a caller.

    Accepts a CSVFormat, an int, a numeric string or a format name.
    Raises InvalidFormatError for anything else.
    """
    if isinstance(value, CSVFormat):
        return value
    if isinstance(value, str):
        text = value.strip().lower().replace("_", "-")
        if text in _FORMAT_NAMES:
            return _FORMAT_NAMES[text]
        if not text.isdigit():
            raise InvalidFormatError(value)
        number = int(text)
    elif isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        raise InvalidFormatError(value)

    try:
        return CSVFormat(number)
    except ValueError:
        raise InvalidFormatError(value) from None


def get_projection(value: object) -> AnyProjection:
    """Return a fresh projection for a format selector."""
    fmt = parse_format(value)
    factory = _PROJECTIONS.get(fmt)
    if factory is None:
        raise InvalidFormatError(value)
    return factory()


def project(
    sessions: Sequence[Session],
    fmt: object,
    *,
    cancel: CancellationToken | None = None,
) -> TabularResult:
    """Project sessions into in-memory tables.

    Single-table formats produce one table named ``rows``; the separate-files
    layout produces ``sessions`` and ``messages``.
    """
    projection = get_projection(fmt)
    if isinstance(projection, SeparateFilesProjection):
        return projection.project(sessions, cancel=cancel)

    table, stats = projection.table(sessions, cancel=cancel)
    return TabularResult(
        format=parse_format(fmt),
        tables={"rows": table},
        sessions=stats.sessions,
        cancelled=stats.cancelled,
    )


def convert_sessions_to_csv(
    sessions: Sequence[Session],
    fmt: object,
    output_path: str | Path,
    *,
    cancel: CancellationToken | None = None,
    export_logger: ExportLogger | None = None,
    encoding: str = "utf-8",
) -> ProjectionResult:
    """Write sessions to a single CSV file in the given format.

    The format is validated before the file is created; the separate-files
    layout is rejected here because it needs two destinations.
    """
    projection = get_projection(fmt)
    if isinstance(projection, SeparateFilesProjection):
        raise InvalidFormatError(fmt)

    stats = projection.write_file(
        sessions, output_path, cancel=cancel, export_logger=export_logger, encoding=encoding,
    )
    return ProjectionResult(
        format=parse_format(fmt),
        locations=[str(output_path)],
        rows_written={str(output_path): stats.rows},
        sessions=stats.sessions,
        cancelled=stats.cancelled,
    )


def create_separate_csv_files(
    sessions: Sequence[Session],
    sessions_path: str | Path,
    messages_path: str | Path,
    *,
    cancel: CancellationToken | None = None,
    export_logger: ExportLogger | None = None,
    encoding: str = "utf-8",
) -> ProjectionResult:
    """Write a sessions CSV and a messages CSV."""
    return SeparateFilesProjection().write_files(
        sessions,
        sessions_path,
        messages_path,
        cancel=cancel,
        export_logger=export_logger,
        encoding=encoding,
    )


# --- Register built-in projections ---

register_projection(CSVFormat.INLINE)(InlineProjection)
register_projection(CSVFormat.PER_LINE)(PerLineProjection)
register_projection(CSVFormat.JSON_EMBED)(JSONEmbedProjection)
register_projection(CSVFormat.SEPARATE_FILES)(SeparateFilesProjection)

__all__ = [
    "MESSAGE_HEADERS",
    "SESSION_HEADERS",
    "BaseProjection",
    "CSVFormat",
    "InlineProjection",
    "JSONEmbedProjection",
    "PerLineProjection",
    "ProjectionResult",
    "SeparateFilesProjection",
    "SessionsProjection",
    "Table",
    "TabularResult",
    "convert_sessions_to_csv",
    "create_separate_csv_files",
    "get_projection",
    "parse_format",
    "project",
    "register_projection",
]
