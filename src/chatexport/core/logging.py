"""Structured logging and verbosity levels for chatexport runs."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any

from rich.console import Console


def setup_logging(verbose: bool) -> None:
    """Configure stdlib logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Summary only
    VERBOSE = 1   # + per-output progress
    DEBUG = 2     # + per-session detail


@dataclass
class OutputLog:
    """Per-output-file statistics."""

    name: str
    format: str = ""
    sessions: int = 0
    rows: int = 0
    session_ids: list[str] = field(default_factory=list)
    time_seconds: float = 0.0
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "format": self.format,
            "sessions": self.sessions,
            "rows": self.rows,
            "session_ids": list(self.session_ids),
            "time_seconds": self.time_seconds,
            "cancelled": self.cancelled,
        }


@dataclass
class ExportLog:
    """Structured log of a complete export run.

    The dict format is::

        {
            "run_id": "20240315T120000Z",
            "outputs": {
                "sessions.csv": {"sessions": 3, "rows": 3, ...},
                "messages.csv": {"sessions": 3, "rows": 17, ...},
            },
            "total_sessions": 3,
            "total_rows": 20,
            "repaired": 0,
            "total_time": 0.04,
            "cancelled": False,
        }
    """

    run_id: str = ""
    outputs: dict[str, OutputLog] = field(default_factory=dict)
    total_time: float = 0.0
    total_sessions: int = 0
    total_rows: int = 0
    repaired: int = 0
    cancelled: bool = False

    def get_or_create_output(self, name: str) -> OutputLog:
        """Get existing output log or create a new one."""
        if name not in self.outputs:
            self.outputs[name] = OutputLog(name=name)
        return self.outputs[name]

    def finalize(self) -> None:
        """Compute totals from per-output data."""
        self.total_sessions = max((o.sessions for o in self.outputs.values()), default=0)
        self.total_rows = sum(o.rows for o in self.outputs.values())
        self.cancelled = any(o.cancelled for o in self.outputs.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "outputs": {
                name: output.to_dict() for name, output in self.outputs.items()
            },
            "total_sessions": self.total_sessions,
            "total_rows": self.total_rows,
            "repaired": self.repaired,
            "total_time": round(self.total_time, 3),
            "cancelled": self.cancelled,
        }


class ExportLogger:
    """Structured logger for export runs.

    Writes JSONL event files to log_dir/ and optionally emits console
    output via Rich based on verbosity level.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        console: Console | None = None,
    ):
        self.verbosity = verbosity
        self.log_dir = log_dir
        self.console = console or Console()
        self.export_log = ExportLog(
            run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
        )
        self._log_file = None
        self._log_path: Path | None = None
        self._output_start: dict[str, float] = {}

        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.export_log.run_id}.jsonl"
            self._log_file = open(self._log_path, "a", encoding="utf-8")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        """Write a JSON event to the JSONL log file."""
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._log_file.write(json.dumps(event) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        if self.verbosity >= min_verbosity:
            self.console.print(message)

    # -- Run lifecycle --

    def export_start(self, input_path: str, session_count: int) -> None:
        self._write_event({
            "event": "export_start",
            "input": input_path,
            "session_count": session_count,
        })
        self._console_print(
            f"  [bold]Loaded[/bold] {session_count} sessions from {input_path}",
            Verbosity.VERBOSE,
        )

    def export_finish(self, total_time: float) -> None:
        """Log the end of the run and finalize stats."""
        self.export_log.total_time = total_time
        self.export_log.finalize()

        self._write_event({"event": "export_finish", **self.export_log.to_dict()})
        self.close()

    # -- Output events --

    def output_start(self, name: str, fmt: str) -> None:
        output = self.export_log.get_or_create_output(name)
        output.format = fmt
        self._output_start[name] = time.time()

        self._write_event({"event": "output_start", "output": name, "format": fmt})
        self._console_print(f"  [bold]Writing[/bold] {name} ({fmt})", Verbosity.VERBOSE)

    def session_written(self, name: str, session_id: str, rows: int) -> None:
        output = self.export_log.get_or_create_output(name)
        output.sessions += 1
        output.rows += rows
        output.session_ids.append(session_id)

        self._write_event({
            "event": "session_written",
            "output": name,
            "session_id": session_id,
            "rows": rows,
        })
        self._console_print(
            f"      [green]+[/green] {session_id} [dim]({rows} rows)[/dim]",
            Verbosity.DEBUG,
        )

    def output_finish(self, name: str, cancelled: bool = False) -> None:
        elapsed = time.time() - self._output_start.pop(name, time.time())
        output = self.export_log.get_or_create_output(name)
        output.time_seconds = elapsed
        output.cancelled = cancelled

        self._write_event({
            "event": "output_finish",
            "output": name,
            "sessions": output.sessions,
            "rows": output.rows,
            "cancelled": cancelled,
            "time_seconds": round(elapsed, 3),
        })
        status = "[yellow]cancelled[/yellow]" if cancelled else "done"
        self._console_print(
            f"    {name}: {output.sessions} sessions, {output.rows} rows, {status} ({elapsed:.2f}s)",
            Verbosity.VERBOSE,
        )

    # -- Repair events --

    def repair_patched(self, input_path: str, patched: int) -> None:
        self.export_log.repaired += patched
        self._write_event({
            "event": "repair_patched",
            "input": input_path,
            "patched": patched,
        })
        self._console_print(
            f"  [bold]Repaired[/bold] {patched} sessions in {input_path}",
            Verbosity.VERBOSE,
        )

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
