from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass
from typing import Callable

from .models import DownloadQuery

ProgressCallback = Callable[["ProgressUpdate"], None]

FORMAT_SORT = "vcodec:h264,ext:mp4:m4a"
OUTPUT_TEMPLATE = "%(display_id)s.%(ext)s"

_PROGRESS_PREFIX = "clipconv:"
_PROGRESS_TEMPLATE = (
    "clipconv:percent=%(progress.percent)s "
    "downloaded=%(progress.downloaded_bytes)s "
    "total=%(progress.total_bytes)s "
    "total_est=%(progress.total_bytes_estimate)s "
    "eta=%(progress.eta)s"
)


@dataclass(frozen=True)
class ProgressUpdate:
    percent: float | None
    eta_seconds: int | None = None


@dataclass(frozen=True)
class RunResult:
    success: bool
    error: str | None = None
    canceled: bool = False


def output_template(query: DownloadQuery) -> str:
    if query.trim is None:
        return OUTPUT_TEMPLATE
    return f"%(display_id)s-{query.trim.filename_part()}.%(ext)s"


def build_download_command(query: DownloadQuery, extra_args: list[str] | None = None) -> list[str]:
    command = [
        "yt-dlp",
        "--no-playlist",
        "--newline",
        "--no-color",
        "--progress-template",
        f"download:{_PROGRESS_TEMPLATE}",
        "-S",
        FORMAT_SORT,
        "--embed-metadata",
        "-o",
        str(query.output_dir / output_template(query)),
    ]
    if query.trim is not None:
        command.extend(
            [
                "--download-sections",
                query.trim.download_section(),
                "--force-keyframes-at-cuts",
            ]
        )
    command.extend(extra_args or [])
    command.append(query.uri)
    return command


def run_download(
    command: list[str],
    on_progress: ProgressCallback,
    cancel_event: threading.Event | None = None,
) -> RunResult:
    if cancel_event is not None and cancel_event.is_set():
        return RunResult(success=False, error="Canceled", canceled=True)

    try:
        process = subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError:
        return RunResult(success=False, error="yt-dlp not found on PATH")

    last_message = ""

    def read_output() -> None:
        nonlocal last_message
        if process.stdout is None:
            return
        for line in process.stdout:
            stripped = line.strip()
            update = parse_progress_line(stripped)
            if update is not None:
                on_progress(update)
            elif stripped:
                last_message = stripped

    reader = threading.Thread(target=read_output, daemon=True)
    reader.start()

    canceled = False
    if cancel_event is not None:
        while process.poll() is None:
            if cancel_event.wait(timeout=0.1):
                canceled = True
                _terminate_process(process)
                break

    returncode = process.wait()
    reader.join(timeout=0.2)
    if canceled:
        return RunResult(success=False, error="Canceled", canceled=True)
    if returncode != 0:
        error = last_message or f"yt-dlp failed with exit code {returncode}"
        return RunResult(success=False, error=error)
    return RunResult(success=True)


def parse_progress_line(line: str) -> ProgressUpdate | None:
    if not line.startswith(_PROGRESS_PREFIX):
        return None
    data = dict(
        part.split("=", 1) for part in line[len(_PROGRESS_PREFIX) :].split() if "=" in part
    )
    percent = _parse_float(data.get("percent"))
    if percent is None:
        downloaded = _parse_float(data.get("downloaded"))
        total = _parse_float(data.get("total")) or _parse_float(data.get("total_est"))
        if downloaded is not None and total:
            percent = downloaded / total * 100
    eta = _parse_float(data.get("eta"))
    return ProgressUpdate(
        percent=None if percent is None else max(0.0, min(100.0, percent)),
        eta_seconds=None if eta is None else int(eta),
    )


def _parse_float(value: str | None) -> float | None:
    if value is None or value.lower() in {"none", "nan", "na"}:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _terminate_process(process: subprocess.Popen[str]) -> None:
    if process.poll() is not None:
        return
    try:
        process.terminate()
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        process.kill()
