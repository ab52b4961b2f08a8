"""chatexport error types and utilities."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path. Failures surface as
    OutputError carrying the target path.
    """
    path = Path(path)
    try:
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    except OSError as e:
        raise OutputError(path, e) from e
    try:
        os.write(fd, content.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        os.replace(tmp, str(path))
    except BaseException as e:
        try:
            os.close(fd)
        except OSError:
            pass
        try:
            os.unlink(tmp)
        except OSError:
            pass
        if isinstance(e, (OSError, UnicodeError)):
            raise OutputError(path, e) from e
        raise


class ChatExportError(Exception):
    """Base exception for chatexport."""

    pass


class ExportSyntaxError(ChatExportError):
    """Input is not valid JSON, or a field has the wrong JSON type."""

    pass


class FormatError(ChatExportError):
    """Valid JSON that does not match the chat-next-web-store envelope."""

    pass


class InvalidFormatError(ChatExportError):
    """An unrecognized output format selector was requested."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"invalid format option: {value!r}")


class OutputError(ChatExportError):
    """A file could not be opened, created or written."""

    def __init__(self, path: str | Path, cause: OSError | UnicodeError):
        self.path = Path(path)
        self.cause = cause
        reason = getattr(cause, "strerror", None) or str(cause)
        super().__init__(f"{self.path}: {reason}")
