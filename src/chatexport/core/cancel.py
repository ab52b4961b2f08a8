"""Cooperative cancellation shared between the CLI and the projector."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable


class CancellationToken:
    """A flag that long-running work checks between units of work.

    Setting the token never interrupts anything by itself; the projector
    checks it before each session and the prompt layer while waiting for a
    line of input.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def install_signal_handlers(
    token: CancellationToken,
    on_signal: Callable[[int], None] | None = None,
) -> Callable[[], None]:
    """Cancel *token* on SIGINT or SIGTERM.

    Returns a callable that puts the previous handlers back. Only the main
    thread may install handlers; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        return lambda: None

    def _handler(signum, frame):
        if on_signal is not None:
            on_signal(signum)
        token.cancel()

    previous = {
        signum: signal.signal(signum, _handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    def restore() -> None:
        for signum, handler in previous.items():
            # None means the handler was not installed from Python
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    return restore
