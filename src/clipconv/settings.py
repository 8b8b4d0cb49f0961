from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_CRF = 25
DEFAULT_VIDEO_CODEC = "h264"

VIDEO_CODECS = {
    "h264": "libx264",
    "h265": "libx265",
    "vp8": "libvpx",
    "vp9": "libvpx-vp9",
    "av1": "libaom-av1",
}
WEBM_CODECS = {"vp8", "vp9", "av1"}
VALID_RESOLUTIONS = (144, 240, 360, 480, 720, 1080, 1440, 2160)


@dataclass(frozen=True)
class Settings:
    inputs: tuple[str, ...]
    output_dir: Path
    crf: int = DEFAULT_CRF
    video_codec: str = DEFAULT_VIDEO_CODEC
    audio_bitrate: int | None = None
    resolution: str | None = None
    trim: bool = False
    sponsorblock: bool = False
    multi_thread: bool = True

    @property
    def container(self) -> str:
        return "webm" if self.video_codec in WEBM_CODECS else "mp4"

    @property
    def resolution_height(self) -> int | None:
        if not self.resolution:
            return None
        return int(self.resolution.lower().rstrip("p"))
