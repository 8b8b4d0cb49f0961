from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from urllib.parse import urlparse

from .settings import VALID_RESOLUTIONS, VIDEO_CODECS

logger = logging.getLogger(__name__)

CRF_MIN = 6
CRF_MAX = 63
CRF_RECOMMENDED_MIN = 22
CRF_RECOMMENDED_MAX = 38
AUDIO_BITRATE_RECOMMENDED = (128, 192)


def is_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return bool(parsed.scheme and parsed.netloc) and " " not in value.strip()


def validate_inputs(inputs: list[str]) -> None:
    if not inputs:
        raise ValueError("No input files or links were provided")
    for value in inputs:
        path = Path(value).expanduser()
        if path.is_file():
            _validate_media_file(path)
        elif not is_url(value):
            raise ValueError(f"Invalid input file or link: {value}")


def _validate_media_file(path: Path) -> None:
    content_type, _ = mimetypes.guess_type(path.name)
    if content_type is None:
        logger.warning("Could not determine content type for file: %s", path)
        return
    if not content_type.startswith(("video/", "audio/")):
        raise ValueError(
            f"Input file is not a recognized video/audio type: {path} (Type: {content_type})"
        )


def validate_output_dir(output_dir: Path) -> None:
    if not output_dir.is_dir():
        raise ValueError(f"Output directory does not exist: {output_dir}")


def validate_crf(crf: int) -> None:
    if crf < CRF_MIN or crf > CRF_MAX:
        raise ValueError(
            f"CRF value must be between {CRF_MIN} and {CRF_MAX} "
            f"(Recommended: {CRF_RECOMMENDED_MIN}-{CRF_RECOMMENDED_MAX})"
        )
    if crf < CRF_RECOMMENDED_MIN:
        logger.warning(
            "CRF value %d is below the recommended minimum of %d. This may result in very large files.",
            crf,
            CRF_RECOMMENDED_MIN,
        )
    elif crf > CRF_RECOMMENDED_MAX:
        logger.warning(
            "CRF value %d is above the recommended maximum of %d. This may result in poor quality.",
            crf,
            CRF_RECOMMENDED_MAX,
        )


def validate_audio_bitrate(bitrate: int | None) -> None:
    if bitrate is None:
        return
    if bitrate <= 0 or bitrate % 2 != 0:
        raise ValueError("Audio bitrate must be a positive multiple of 2.")
    low, high = AUDIO_BITRATE_RECOMMENDED
    if not low <= bitrate <= high:
        logger.warning(
            "Audio bitrate values outside the %d-%d kbps range are not generally recommended.",
            low,
            high,
        )


def normalize_resolution(resolution: str | None) -> str | None:
    if resolution is None or not resolution.strip():
        return None
    text = resolution.strip().lower()
    digits = text[:-1] if text.endswith("p") else text
    if not digits.isdigit() or int(digits) not in VALID_RESOLUTIONS:
        options = ", ".join(f"{value}p" for value in VALID_RESOLUTIONS)
        raise ValueError(f"Invalid resolution: {resolution}. Valid options are: {options}")
    return f"{int(digits)}p"


def normalize_codec(codec: str | None) -> str | None:
    if codec is None or not codec.strip():
        return None
    key = codec.strip().lower()
    if key not in VIDEO_CODECS:
        options = ", ".join(VIDEO_CODECS)
        raise ValueError(f"Invalid video codec: {codec}. Valid options are: {options}")
    return key
