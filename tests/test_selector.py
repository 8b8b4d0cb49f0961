from __future__ import annotations

import io
import os
import signal
import threading

import pytest
from rich.console import Console

from clipconv.models import TrimRange
from clipconv.selector import TrimRangeSelector
from clipconv.ui.keys import INTERRUPT, TerminalKeys


class FakeKeys:
    """Replays key names; ``None`` entries simulate an idle poll."""

    def __init__(self, keys: list[str | None], on_idle: threading.Event | None = None) -> None:
        self._keys = list(keys)
        self._on_idle = on_idle
        self.entered = False
        self.exited = False
        self.idle_polls = 0

    def __enter__(self) -> FakeKeys:
        self.entered = True
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.exited = True

    def read_key(self, timeout: float) -> str | None:
        if self._keys:
            key = self._keys.pop(0)
            if key is not None:
                return key
        self.idle_polls += 1
        if self._on_idle is not None:
            self._on_idle.set()
        return None


def _console() -> Console:
    return Console(file=io.StringIO(), width=100)


def test_show_returns_confirmed_range() -> None:
    keys = FakeKeys(["right", "right", "2", "left", "enter"])
    selector = TrimRangeSelector(120.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.show() == "2-119"
    assert keys.entered and keys.exited


def test_run_parses_protocol_output() -> None:
    keys = FakeKeys(["space", "1", ":", "0", "0", "enter", "enter"])
    selector = TrimRangeSelector(90.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.run() == TrimRange(start=60.0, duration=30.0)


def test_escape_cancels() -> None:
    keys = FakeKeys(["right", "escape"])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.show() == ""
    assert keys.exited


def test_run_returns_none_on_cancel() -> None:
    keys = FakeKeys(["escape"])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.run() is None


def test_idle_polls_wait_for_keys() -> None:
    keys = FakeKeys([None, None, None, "enter"])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.show() == "0-30"
    assert keys.idle_polls == 3


def test_cancel_event_breaks_idle_loop_while_typing() -> None:
    cancel = threading.Event()
    keys = FakeKeys(["space", "1", "2"], on_idle=cancel)
    selector = TrimRangeSelector(
        30.0,
        console=_console(),
        keys=keys,
        cancel_event=cancel,
        poll_interval=0,
    )
    assert selector.show() == ""
    assert selector.state.buffer == "12"
    assert keys.exited


def test_interrupt_key_cancels_and_sets_event() -> None:
    cancel = threading.Event()
    keys = FakeKeys(["right", INTERRUPT])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, cancel_event=cancel, poll_interval=0)
    assert selector.show() == ""
    assert cancel.is_set()


def test_preset_cancel_event_skips_loop() -> None:
    cancel = threading.Event()
    cancel.set()
    keys = FakeKeys(["enter"])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, cancel_event=cancel, poll_interval=0)
    assert selector.run() is None


def test_renders_state_to_console() -> None:
    console = _console()
    keys = FakeKeys(["enter"])
    TrimRangeSelector(75.5, console=console, keys=keys, poll_interval=0).show()
    output = console.file.getvalue()
    assert "01:15.500" in output
    assert "Currently adjusting" in output


@pytest.mark.skipif(os.name == "nt", reason="select() needs a POSIX pipe")
def test_closed_input_cancels_without_spinning() -> None:
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    with os.fdopen(read_fd) as stream:
        keys = TerminalKeys(stream)
        calls = []
        original = keys.read_key

        def counting_read_key(timeout: float) -> str | None:
            calls.append(timeout)
            return original(timeout)

        keys.read_key = counting_read_key
        cancel = threading.Event()
        selector = TrimRangeSelector(30.0, console=_console(), keys=keys, cancel_event=cancel, poll_interval=0.05)
        assert selector.show() == ""
    assert len(calls) == 1
    assert cancel.is_set()


@pytest.mark.skipif(not hasattr(signal, "SIGINT") or os.name == "nt", reason="needs POSIX signals")
def test_sigint_cancels_and_restores_handler() -> None:
    class SignallingKeys(FakeKeys):
        def read_key(self, timeout: float) -> str | None:
            if self.idle_polls == 0:
                os.kill(os.getpid(), signal.SIGINT)
            return super().read_key(timeout)

    previous = signal.getsignal(signal.SIGINT)
    keys = SignallingKeys(["right"])
    selector = TrimRangeSelector(30.0, console=_console(), keys=keys, poll_interval=0)
    assert selector.show() == ""
    assert keys.exited
    assert signal.getsignal(signal.SIGINT) is previous
