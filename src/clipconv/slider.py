"""Trim slider state machine.

Every transition takes the current :class:`SliderState` and returns either the
next state or a terminal outcome (:class:`Confirmed` / :class:`Cancelled`).
Nothing here touches the terminal, so the whole machine can be driven from
tests with plain key names.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from .models import TrimRange
from .timeparse import TimeParseError, parse_time_input, round_seconds

FINE_STEP = 0.1
NORMAL_STEP = 1.0
COARSE_STEP = 60.0

_TYPING_CHARS = set("0123456789:.")


class Selection(Enum):
    START = "start"
    END = "end"


class Mode(Enum):
    NAVIGATE = "navigate"
    TYPING = "typing"


@dataclass(frozen=True)
class SliderState:
    duration: float
    start: float
    end: float
    selection: Selection = Selection.START
    mode: Mode = Mode.NAVIGATE
    buffer: str = ""

    @classmethod
    def initial(cls, duration: float) -> SliderState:
        if not duration > 0:
            raise ValueError("Duration must be positive")
        return cls(duration=duration, start=0.0, end=duration)

    @property
    def position(self) -> float:
        return self.start if self.selection is Selection.START else self.end

    @property
    def is_typing(self) -> bool:
        return self.mode is Mode.TYPING

    def valid_range(self) -> tuple[float, float]:
        if self.selection is Selection.START:
            return (0.0, self.end)
        return (self.start, self.duration)


@dataclass(frozen=True)
class Confirmed:
    trim: TrimRange


@dataclass(frozen=True)
class Cancelled:
    pass


Outcome = Confirmed | Cancelled
Transition = SliderState | Confirmed | Cancelled


def select(state: SliderState, selection: Selection) -> SliderState:
    return replace(state, selection=selection)


def begin_typing(state: SliderState) -> SliderState:
    return replace(state, mode=Mode.TYPING, buffer="")


def adjust(state: SliderState, step: float) -> SliderState:
    low, high = state.valid_range()
    value = min(max(state.position + step, low), high)
    return _round_positions(_set_position(state, value))


def confirm(state: SliderState) -> Confirmed:
    return Confirmed(TrimRange.from_bounds(state.start, state.end))


def type_char(state: SliderState, char: str) -> SliderState:
    if char not in _TYPING_CHARS:
        return state
    return replace(state, buffer=state.buffer + char)


def backspace(state: SliderState) -> SliderState:
    return replace(state, buffer=state.buffer[:-1])


def leave_typing(state: SliderState) -> SliderState:
    return replace(state, mode=Mode.NAVIGATE, buffer="")


def commit_typed(state: SliderState) -> SliderState:
    if not state.buffer:
        return state
    navigate = leave_typing(state)
    try:
        seconds = parse_time_input(state.buffer)
    except TimeParseError:
        return navigate
    low, high = state.valid_range()
    if not low <= seconds <= high:
        return navigate
    return _round_positions(_set_position(navigate, seconds))


_NAVIGATION_STEPS = {
    "left": -NORMAL_STEP,
    "right": NORMAL_STEP,
    "shift+left": -FINE_STEP,
    "shift+right": FINE_STEP,
    ",": -FINE_STEP,
    ".": FINE_STEP,
    "up": COARSE_STEP,
    "down": -COARSE_STEP,
}


def handle_key(state: SliderState, key: str) -> Transition:
    """Route a logical key name to the matching transition."""
    if state.mode is Mode.TYPING:
        return _handle_typing_key(state, key)

    if key == "escape":
        return Cancelled()
    if key == "enter":
        return confirm(state)
    if key == "1":
        return select(state, Selection.START)
    if key == "2":
        return select(state, Selection.END)
    if key == "space":
        return begin_typing(state)
    step = _NAVIGATION_STEPS.get(key)
    if step is not None:
        return adjust(state, step)
    return state


def _handle_typing_key(state: SliderState, key: str) -> SliderState:
    if key == "enter":
        return commit_typed(state)
    if key == "escape":
        return leave_typing(state)
    if key == "backspace":
        return backspace(state)
    if len(key) == 1:
        return type_char(state, key)
    return state


def _set_position(state: SliderState, value: float) -> SliderState:
    if state.selection is Selection.START:
        return replace(state, start=value)
    return replace(state, end=value)


def _round_positions(state: SliderState) -> SliderState:
    start = round_seconds(state.start)
    end = round_seconds(state.end)
    # Rounding must not push either endpoint across its bound.
    end = min(end, state.duration)
    start = min(start, end)
    return replace(state, start=start, end=end)
