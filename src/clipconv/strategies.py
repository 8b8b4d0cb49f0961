"""Per-site download behavior.

Strategies are tried in registration order and the first whose predicate
matches the link wins; :class:`GenericStrategy` handles everything else.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

from .models import DownloadQuery, VideoMetadata

logger = logging.getLogger(__name__)

Predicate = Callable[[str], bool]


class DownloadStrategy:
    name = "generic"

    def extra_args(self, query: DownloadQuery) -> list[str]:
        return []

    def pre_download(self, metadata: VideoMetadata, query: DownloadQuery) -> None:
        return None

    def post_download(self, query: DownloadQuery, metadata: VideoMetadata) -> Path | None:
        return None


class GenericStrategy(DownloadStrategy):
    pass


class YouTubeStrategy(DownloadStrategy):
    name = "youtube"

    def extra_args(self, query: DownloadQuery) -> list[str]:
        if not query.sponsorblock:
            return []
        return ["--sponsorblock-remove", "all"]

    def pre_download(self, metadata: VideoMetadata, query: DownloadQuery) -> None:
        if query.sponsorblock:
            logger.info("Removing sponsored segments using SponsorBlock")


def host_contains(fragment: str) -> Predicate:
    fragment = fragment.casefold()

    def predicate(uri: str) -> bool:
        host = urlparse(uri).hostname or ""
        return fragment in host.casefold()

    return predicate


DEFAULT_STRATEGIES: list[tuple[Predicate, DownloadStrategy]] = [
    (host_contains("youtu"), YouTubeStrategy()),
]


def select_strategy(
    uri: str,
    strategies: list[tuple[Predicate, DownloadStrategy]] | None = None,
) -> DownloadStrategy:
    for predicate, strategy in strategies if strategies is not None else DEFAULT_STRATEGIES:
        if predicate(uri):
            return strategy
    return GenericStrategy()
