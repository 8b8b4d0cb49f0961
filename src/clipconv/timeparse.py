from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_TIME_INPUT_RE = re.compile(r"^(?:(\d+):)?(\d+)(?:\.(\d+))?$")


class TimeParseError(ValueError):
    pass


def parse_time_input(text: str) -> float:
    """Parse ``SS``, ``MM:SS`` or ``MM:SS.mmm`` into seconds."""
    token = text.strip()
    if not token:
        raise TimeParseError("Empty time input")

    match = _TIME_INPUT_RE.match(token)
    if match is None:
        raise TimeParseError(f"Invalid time input: {token}")
    minutes_text, seconds_text, fraction_text = match.groups()
    if fraction_text is not None and minutes_text is None:
        raise TimeParseError(f"Invalid time input: {token}")

    minutes_val = int(minutes_text) if minutes_text is not None else 0
    seconds_val = _parse_decimal_seconds(
        f"{seconds_text}.{fraction_text}" if fraction_text is not None else seconds_text
    )
    return minutes_val * 60 + seconds_val


def format_seconds(value: float) -> str:
    if value != value:
        return "0"
    rounded = round_seconds(value)
    text = f"{rounded:.3f}"
    text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_clock(value: float) -> str:
    total_ms = int(round(max(0.0, value) * 1000))
    minutes, remainder = divmod(total_ms, 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_range_output(start: float, end: float) -> str:
    return f"{format_seconds(start)}-{format_seconds(end)}"


def parse_range_output(text: str) -> tuple[float, float]:
    parts = text.strip().split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid range: {text}")
    start = _parse_decimal_seconds(parts[0])
    end = _parse_decimal_seconds(parts[1])
    if start > end:
        raise ValueError(f"Range start is after its end: {text}")
    return (start, end)


def round_seconds(value: float) -> float:
    return round(value, 3)


def _parse_decimal_seconds(value: str) -> float:
    try:
        number = Decimal(value.strip())
    except (InvalidOperation, ValueError) as exc:
        raise TimeParseError(f"Invalid time value: {value}") from exc
    if not number.is_finite() or number < 0:
        raise TimeParseError(f"Invalid time value: {value}")
    return float(number)
