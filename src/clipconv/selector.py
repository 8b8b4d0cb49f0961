from __future__ import annotations

import logging
import threading

from rich.console import Console

from .models import TrimRange
from .signals import sigint_sets
from .slider import Cancelled, Confirmed, SliderState, handle_key
from .timeparse import format_range_output, parse_range_output
from .ui.keys import INTERRUPT, KeySource, TerminalKeys
from .ui.slider_view import render_state

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05


class TrimRangeSelector:
    """Interactive start/end picker driven by single key presses.

    ``show`` returns ``"<start>-<end>"`` in decimal seconds, or an empty string
    when the user cancels (escape, Ctrl+C or ``cancel_event``).
    """

    def __init__(
        self,
        duration: float,
        *,
        console: Console | None = None,
        keys: KeySource | None = None,
        cancel_event: threading.Event | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._state = SliderState.initial(duration)
        self._console = console or Console()
        self._keys = keys or TerminalKeys()
        self._cancel_event = cancel_event or threading.Event()
        self._poll_interval = poll_interval

    @property
    def state(self) -> SliderState:
        return self._state

    def show(self) -> str:
        outcome = self._loop()
        if isinstance(outcome, Confirmed):
            return format_range_output(outcome.trim.start, outcome.trim.end)
        return ""

    def run(self) -> TrimRange | None:
        result = self.show()
        if not result:
            return None
        start, end = parse_range_output(result)
        return TrimRange.from_bounds(start, end)

    def _loop(self) -> Confirmed | Cancelled:
        with sigint_sets(self._cancel_event), self._console.screen(hide_cursor=True), self._keys:
            while not self._cancel_event.is_set():
                self._render()
                key = self._wait_for_key()
                if key is None:
                    break
                transition = handle_key(self._state, key)
                if isinstance(transition, (Confirmed, Cancelled)):
                    return transition
                self._state = transition
        logger.debug("Trim selection interrupted")
        return Cancelled()

    def _wait_for_key(self) -> str | None:
        while not self._cancel_event.is_set():
            key = self._keys.read_key(self._poll_interval)
            if key is None:
                continue
            if key == INTERRUPT:
                self._cancel_event.set()
                return None
            return key
        return None

    def _render(self) -> None:
        self._console.clear()
        self._console.print(render_state(self._state))
