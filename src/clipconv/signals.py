from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def sigint_sets(event: threading.Event) -> Iterator[None]:
    """Turn Ctrl+C into ``event.set()`` for the duration of the block.

    Signal handlers can only be installed from the main thread; elsewhere the
    block runs with the current handler untouched.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def on_sigint(signum: int, frame: object) -> None:
        event.set()

    previous = signal.signal(signal.SIGINT, on_sigint)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
