"""Line-by-line prompts that can be interrupted by a cancellation token.

A blocking read on stdin cannot be interrupted, so each read runs on a
daemon thread while the caller waits for either the line or the token.
When the token wins, the reader thread is abandoned.
"""

from __future__ import annotations

import queue
import sys
import threading
from pathlib import Path
from typing import TextIO

from rich.console import Console

from chatexport.core.cancel import CancellationToken


class PromptCancelled(Exception):
    """The prompt was interrupted or input ended before a line arrived."""

    pass


class LineReader:
    """Reads trimmed lines from a stream, honoring a cancellation token."""

    def __init__(
        self,
        console: Console,
        token: CancellationToken | None = None,
        stream: TextIO | None = None,
        poll_interval: float = 0.1,
    ):
        self.console = console
        self.token = token or CancellationToken()
        self._stream = stream
        self.poll_interval = poll_interval

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdin

    def _read_line(self) -> str:
        results: queue.Queue = queue.Queue(maxsize=1)
        stream = self.stream

        def _worker() -> None:
            try:
                results.put(("line", stream.readline()))
            except Exception as e:  # handed to the waiting thread
                results.put(("error", e))

        threading.Thread(target=_worker, name="prompt-reader", daemon=True).start()

        while True:
            try:
                kind, value = results.get(timeout=self.poll_interval)
            except queue.Empty:
                if self.token.cancelled:
                    raise PromptCancelled("operation canceled") from None
                continue
            if kind == "error":
                raise value
            if value == "":
                raise PromptCancelled("end of input")
            return value.strip()

    def prompt(self, text: str) -> str:
        """Print *text* and return the next line of input, trimmed."""
        if self.token.cancelled:
            raise PromptCancelled("operation canceled")
        self.console.print(text, end="", markup=False, highlight=False)
        return self._read_line()

    def ask_yes(self, text: str) -> bool:
        """Prompt for a yes/no answer; only ``yes`` counts as agreement."""
        return self.prompt(text).lower() == "yes"

    def confirm_overwrite(self, path: Path) -> bool:
        """Return True if *path* is free or the user agrees to overwrite it."""
        if not Path(path).exists():
            return True
        return self.ask_yes(f"File '{path}' already exists. Overwrite? (yes/no): ")
