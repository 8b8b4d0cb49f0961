from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path
from typing import Callable

from .errors import ConversionError
from .models import TrimRange, VideoMetadata
from .probe import MediaInfo, probe_media
from .settings import VIDEO_CODECS, Settings

Runner = Callable[[list[str]], subprocess.CompletedProcess[str]]
Prober = Callable[[Path], MediaInfo]

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RE = re.compile(r"\s+")
_MAX_NAME_LENGTH = 120


class FfmpegConverter:
    """Conversion engine backed by the ``ffmpeg`` command."""

    def __init__(
        self,
        settings: Settings,
        *,
        runner: Runner | None = None,
        prober: Prober | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner or _run_subprocess
        self._prober = prober or probe_media

    def convert(
        self,
        path: Path,
        metadata: VideoMetadata | None = None,
        trim: TrimRange | None = None,
    ) -> Path:
        info = self._prober(path)
        output = output_path_for(path, metadata, self._settings)
        command = build_ffmpeg_command(path, output, info, self._settings, trim)
        completed = self._runner(command)
        if completed.returncode != 0:
            raise ConversionError(_summarize_error(completed))
        if not output.exists():
            raise ConversionError(f"ffmpeg did not write {output}")
        return output


def build_ffmpeg_command(
    input_path: Path,
    output_path: Path,
    info: MediaInfo,
    settings: Settings,
    trim: TrimRange | None = None,
) -> list[str]:
    if not info.has_video and not info.has_audio:
        raise ConversionError("There is no video or audio stream in the file")

    command = ["ffmpeg", "-hide_banner", "-loglevel", "error", "-y"]
    if trim is not None:
        command.extend(trim.ffmpeg_input_args())
    command.extend(["-i", str(input_path)])
    if trim is not None:
        command.extend(trim.ffmpeg_output_args())

    if info.has_video:
        command.extend(_video_args(info, settings))
    else:
        command.append("-vn")

    if info.has_audio:
        command.extend(_audio_args(settings))
    else:
        command.append("-an")

    if _is_web_playback(settings, output_path):
        command.extend(["-movflags", "+faststart"])
    command.append(str(output_path))
    return command


def _video_args(info: MediaInfo, settings: Settings) -> list[str]:
    codec = settings.video_codec
    args = ["-map", "0:v:0", "-c:v", VIDEO_CODECS[codec], "-crf", str(settings.crf)]
    if codec in {"h264", "h265"}:
        args.extend(["-preset", "veryslow"])
    if codec in {"vp8", "vp9"}:
        args.extend(["-b:v", "0", "-row-mt", "1"])
    if codec == "av1":
        args.extend(["-b:v", "0", "-cpu-used", str(_av1_cpu_used(info.fps)), "-pix_fmt", "yuv420p10le"])
    else:
        args.extend(["-pix_fmt", "yuv420p"])
        args.extend(["-threads", str(_thread_count(settings.multi_thread))])
    height = settings.resolution_height
    if height is not None:
        args.extend(["-vf", f"scale=-2:{height}"])
    return args


def _audio_args(settings: Settings) -> list[str]:
    codec = "libopus" if settings.video_codec in {"vp8", "vp9", "av1"} else "aac"
    args = ["-map", "0:a:0", "-c:a", codec]
    if settings.audio_bitrate is not None:
        args.extend(["-b:a", f"{settings.audio_bitrate}k"])
    return args


def _av1_cpu_used(fps: float | None) -> int:
    # libaom gets very slow at low cpu-used values on high frame rates.
    if fps is not None and fps > 30:
        return 6
    return 4


def _thread_count(multi_thread: bool) -> int:
    if not multi_thread:
        return 1
    return os.cpu_count() or 1


def _is_web_playback(settings: Settings, output_path: Path) -> bool:
    if settings.video_codec == "h264":
        return True
    return output_path.suffix.lower() in {".mp4", ".mov"}


def output_path_for(
    input_path: Path,
    metadata: VideoMetadata | None,
    settings: Settings,
) -> Path:
    base = sanitize_filename(metadata.title) if metadata and metadata.title else ""
    base = base or input_path.stem or "video"
    candidate = settings.output_dir / f"{base}.{settings.container}"
    counter = 1
    while candidate.exists() or candidate.resolve() == input_path.resolve():
        candidate = settings.output_dir / f"{base}-{counter}.{settings.container}"
        counter += 1
    return candidate


def sanitize_filename(value: str) -> str:
    cleaned = _INVALID_FILENAME_CHARS.sub("", value)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip(" .")
    return cleaned[:_MAX_NAME_LENGTH].rstrip(" .")


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
        raise ConversionError(f"Missing command: {command[0]}") from exc


def _summarize_error(completed: subprocess.CompletedProcess[str]) -> str:
    stderr = completed.stderr or ""
    stdout = completed.stdout or ""
    message = stderr.strip() or stdout.strip()
    if not message:
        return f"ffmpeg failed with exit code {completed.returncode}"
    return message.splitlines()[-1]
