"""ffprobe helpers."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .errors import ProbeError

Runner = Callable[[list[str]], subprocess.CompletedProcess[str]]


@dataclass(frozen=True)
class MediaInfo:
    duration: float | None
    has_video: bool
    has_audio: bool
    fps: float | None = None
    width: int | None = None
    height: int | None = None


def probe_media(path: Path, runner: Runner | None = None) -> MediaInfo:
    """Read stream and format information from ``path`` via ffprobe."""
    command = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(path),
    ]
    runner = runner or _run_subprocess
    completed = runner(command)
    if completed.returncode != 0:
        raise ProbeError(f"ffprobe failed for {path} (exit code {completed.returncode})")
    try:
        data = json.loads(completed.stdout or "")
    except json.JSONDecodeError as exc:
        raise ProbeError(f"ffprobe returned invalid JSON for {path}") from exc
    if not isinstance(data, dict):
        raise ProbeError(f"ffprobe returned unexpected output for {path}")
    return _parse_media_info(data)


def probe_duration(path: Path, runner: Runner | None = None) -> float:
    info = probe_media(path, runner)
    if info.duration is None:
        raise ProbeError(f"No duration reported for {path}")
    return info.duration


def _parse_media_info(data: dict[str, Any]) -> MediaInfo:
    streams = data.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    format_info = data.get("format") or {}
    return MediaInfo(
        duration=_as_float(format_info.get("duration")),
        has_video=video is not None,
        has_audio=audio is not None,
        fps=_parse_rate(video.get("r_frame_rate")) if video else None,
        width=_as_int(video.get("width")) if video else None,
        height=_as_int(video.get("height")) if video else None,
    )


def _parse_rate(value: Any) -> float | None:
    # r_frame_rate looks like "30000/1001"
    if not isinstance(value, str) or "/" not in value:
        return _as_float(value)
    num, den = value.split("/", 1)
    numerator = _as_float(num)
    denominator = _as_float(den)
    if numerator is None or not denominator:
        return None
    return numerator / denominator


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _run_subprocess(command: list[str]) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise ProbeError(f"Missing command: {command[0]}") from exc
