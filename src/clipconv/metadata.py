from __future__ import annotations

import json
import subprocess
from typing import Any, Callable

from .errors import DownloadError
from .models import VideoMetadata

Runner = Callable[[list[str]], subprocess.CompletedProcess[str]]


def get_metadata(url: str, runner: Runner | None = None) -> VideoMetadata:
    data = _run_dump_json(url, runner)
    return parse_metadata(data, url)


def _run_dump_json(url: str, runner: Runner | None) -> dict[str, Any]:
    command = ["yt-dlp", "--dump-json", "--skip-download", "--no-playlist", url]
    runner = runner or _run_subprocess
    completed = runner(command)
    if completed.returncode != 0:
        message = _summarize_error(completed)
        raise DownloadError(message)

    stdout = completed.stdout or ""
    line = _last_non_empty_line(stdout)
    if line is None:
        raise DownloadError("yt-dlp returned no metadata")

    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise DownloadError("Failed to parse metadata JSON") from exc
    if not isinstance(data, dict):
        raise DownloadError("yt-dlp metadata is not a JSON object")
    return data


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
        raise DownloadError(f"Missing command: {command[0]}") from exc


def _summarize_error(completed: subprocess.CompletedProcess[str]) -> str:
    stderr = completed.stderr or ""
    stdout = completed.stdout or ""
    message = stderr.strip() or stdout.strip()
    if not message:
        return f"yt-dlp failed with exit code {completed.returncode}"
    return message.splitlines()[-1]


def _last_non_empty_line(text: str) -> str | None:
    for line in reversed(text.splitlines()):
        if line.strip():
            return line.strip()
    return None


def parse_metadata(data: dict[str, Any], url: str) -> VideoMetadata:
    duration_value = data.get("duration")
    duration = None
    if isinstance(duration_value, (int, float)) and not isinstance(duration_value, bool):
        duration = float(duration_value)
    return VideoMetadata(
        video_id=str(data.get("display_id") or data.get("id") or url),
        title=_as_str(data.get("title")),
        uploader=_as_str(data.get("uploader")),
        duration=duration,
        webpage_url=_as_str(data.get("webpage_url")) or url,
        extractor=_as_str(data.get("extractor_key") or data.get("extractor")),
        is_live=data.get("is_live") is True,
    )


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
