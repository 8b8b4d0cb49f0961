from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .timeparse import format_seconds


@dataclass(frozen=True)
class Link:
    uri: str


@dataclass(frozen=True)
class LocalFile:
    path: Path


MediaInput = Link | LocalFile


@dataclass(frozen=True)
class TrimRange:
    start: float
    duration: float

    def __post_init__(self) -> None:
        if self.start < 0 or self.duration < 0:
            raise ValueError("Trim range values must be non-negative")

    @classmethod
    def from_bounds(cls, start: float, end: float) -> TrimRange:
        if end < start:
            raise ValueError("Trim range end must not precede its start")
        return cls(start=start, duration=end - start)

    @property
    def end(self) -> float:
        return self.start + self.duration

    def download_section(self) -> str:
        return f"*{format_seconds(self.start)}-{format_seconds(self.end)}"

    def filename_part(self) -> str:
        start = format_seconds(self.start).replace(".", "_")
        end = format_seconds(self.end).replace(".", "_")
        return f"{start}-{end}"

    def ffmpeg_input_args(self) -> list[str]:
        return ["-ss", format_seconds(self.start)]

    def ffmpeg_output_args(self) -> list[str]:
        return ["-t", format_seconds(self.duration)]


@dataclass(frozen=True)
class VideoMetadata:
    video_id: str
    title: str | None
    uploader: str | None
    duration: float | None
    webpage_url: str | None
    extractor: str | None = None
    is_live: bool = False


@dataclass(frozen=True)
class DownloadQuery:
    uri: str
    output_dir: Path
    trim: TrimRange | None = None
    sponsorblock: bool = False


@dataclass(frozen=True)
class DownloadResult:
    output_path: Path | None
    metadata: VideoMetadata | None
    error: str | None = None


@dataclass(frozen=True)
class ConversionItem:
    path: Path
    metadata: VideoMetadata | None = None
