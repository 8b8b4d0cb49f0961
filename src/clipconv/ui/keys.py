from __future__ import annotations

import os
import sys
import time
from typing import Protocol, TextIO

if os.name == "nt":
    import msvcrt
else:
    import select
    import termios
    import tty

INTERRUPT = "ctrl+c"

_ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[1;2A": "shift+up",
    "\x1b[1;2B": "shift+down",
    "\x1b[1;2C": "shift+right",
    "\x1b[1;2D": "shift+left",
    "\x1b[a": "shift+up",
    "\x1b[b": "shift+down",
    "\x1b[c": "shift+right",
    "\x1b[d": "shift+left",
}
_SINGLE_KEYS = {
    "\x1b": "escape",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    " ": "space",
    "\t": "tab",
    "\x03": INTERRUPT,
}
_WINDOWS_EXTENDED = {
    "H": "up",
    "P": "down",
    "K": "left",
    "M": "right",
}
# Sequences arrive byte by byte; this bounds the wait for the rest of one.
_SEQUENCE_TIMEOUT = 0.02


class KeySource(Protocol):
    def __enter__(self) -> KeySource: ...

    def __exit__(self, *exc_info: object) -> None: ...

    def read_key(self, timeout: float) -> str | None: ...


def decode_key(sequence: str) -> str:
    if sequence in _ESCAPE_SEQUENCES:
        return _ESCAPE_SEQUENCES[sequence]
    if sequence in _SINGLE_KEYS:
        return _SINGLE_KEYS[sequence]
    if sequence.startswith("\x1b"):
        return "unknown"
    return sequence


class TerminalKeys:
    """Read single key presses from the controlling terminal.

    Entering the context switches the terminal to cbreak mode (no echo, no line
    buffering, signals still delivered); leaving it restores the saved mode.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._saved_attrs: list | None = None

    def __enter__(self) -> TerminalKeys:
        if os.name != "nt" and self._stream.isatty():
            fd = self._stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._saved_attrs is not None:
            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def read_key(self, timeout: float) -> str | None:
        if os.name == "nt":
            return self._read_key_windows(timeout)
        return self._read_key_posix(timeout)

    def _read_key_posix(self, timeout: float) -> str | None:
        fd = self._stream.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return None
        sequence = _read_char(fd)
        if not sequence:
            # A closed input stream stays readable forever; treat it as Ctrl+C.
            return INTERRUPT
        if sequence == "\x1b":
            while True:
                more, _, _ = select.select([fd], [], [], _SEQUENCE_TIMEOUT)
                if not more:
                    break
                char = _read_char(fd)
                if not char:
                    break
                sequence += char
                if sequence in _ESCAPE_SEQUENCES or _sequence_complete(sequence):
                    break
        return decode_key(sequence)

    def _read_key_windows(self, timeout: float) -> str | None:
        if not msvcrt.kbhit():
            time.sleep(timeout)
            return None
        char = msvcrt.getwch()
        if char in {"\x00", "\xe0"}:
            return _WINDOWS_EXTENDED.get(msvcrt.getwch(), "unknown")
        return decode_key(char)


def _read_char(fd: int) -> str:
    """Read one UTF-8 encoded character, or return "" at end of input."""
    data = os.read(fd, 1)
    if not data:
        return ""
    for _ in range(_utf8_length(data[0]) - 1):
        more = os.read(fd, 1)
        if not more:
            break
        data += more
    return data.decode("utf-8", errors="replace")


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _sequence_complete(sequence: str) -> bool:
    # CSI sequences end with a final byte in the @..~ range.
    if len(sequence) < 3:
        return False
    return "@" <= sequence[-1] <= "~" and sequence[-1] != "["
