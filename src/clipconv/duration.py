from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .models import VideoMetadata

logger = logging.getLogger(__name__)

DurationProbe = Callable[[Path], float]
MetadataFetcher = Callable[[str], VideoMetadata]


class DurationResolver:
    """Find the reference duration for the trim slider.

    A local file is probed when one is available since that needs no network
    round trip; otherwise the first link's metadata is used. Failures are
    logged and reported as ``None``, whatever the cause.
    """

    def __init__(self, probe_duration: DurationProbe, fetch_metadata: MetadataFetcher) -> None:
        self._probe_duration = probe_duration
        self._fetch_metadata = fetch_metadata

    def resolve(self, local_files: list[Path], links: list[str]) -> float | None:
        if local_files:
            duration = self._from_file(local_files[0])
        elif links:
            duration = self._from_link(links[0])
        else:
            return None

        if duration is None or not duration > 0:
            logger.warning("Could not determine a valid video duration. Skipping trim.")
            return None
        return duration

    def _from_file(self, path: Path) -> float | None:
        try:
            return self._probe_duration(path)
        except Exception as exc:
            logger.warning("Failed to get media info for %s: %s", path, exc)
            return None

    def _from_link(self, uri: str) -> float | None:
        try:
            metadata = self._fetch_metadata(uri)
        except Exception as exc:
            logger.warning("Failed to fetch metadata for %s: %s", uri, exc)
            return None
        return metadata.duration
