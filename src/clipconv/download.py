from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable

from rich.console import Console

from .errors import DownloadError
from .metadata import get_metadata
from .models import DownloadQuery, DownloadResult, VideoMetadata
from .strategies import DownloadStrategy, Predicate, select_strategy
from .ytdlp_runner import ProgressCallback, ProgressUpdate, RunResult, build_download_command, run_download

logger = logging.getLogger(__name__)

MetadataRunner = Callable[[list[str]], subprocess.CompletedProcess[str]]
DownloadRunner = Callable[[list[str], ProgressCallback, threading.Event | None], RunResult]


class YtDlpDownloader:
    """Download engine backed by the ``yt-dlp`` command."""

    def __init__(
        self,
        *,
        console: Console | None = None,
        strategies: list[tuple[Predicate, DownloadStrategy]] | None = None,
        metadata_runner: MetadataRunner | None = None,
        download_runner: DownloadRunner | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._console = console or Console(stderr=True)
        self._strategies = strategies
        self._metadata_runner = metadata_runner
        self._download_runner = download_runner or run_download
        self._cancel_event = cancel_event

    def fetch_metadata(self, uri: str) -> VideoMetadata:
        with self._console.status("Fetching data...", spinner="arrow3"):
            metadata = get_metadata(uri, runner=self._metadata_runner)
        if metadata.duration is None:
            raise DownloadError(f"Video at {uri} has no duration information")
        return metadata

    def download(self, query: DownloadQuery, metadata: VideoMetadata | None = None) -> DownloadResult:
        if metadata is None:
            try:
                metadata = self.fetch_metadata(query.uri)
            except DownloadError as exc:
                logger.error("Failed to fetch url %s: %s", query.uri, exc)
                return DownloadResult(output_path=None, metadata=None, error=str(exc))

        if metadata.is_live:
            logger.error("Live streams are not supported: %s", query.uri)
            return DownloadResult(output_path=None, metadata=metadata, error="Live streams are not supported")

        strategy = select_strategy(query.uri, self._strategies)
        logger.debug("Using %s download strategy for %s", strategy.name, query.uri)
        strategy.pre_download(metadata, query)

        query.output_dir.mkdir(parents=True, exist_ok=True)
        command = build_download_command(query, strategy.extra_args(query))
        result = self._run(command)
        if not result.success:
            logger.error("Download failed for %s: %s", query.uri, result.error)
            return DownloadResult(output_path=None, metadata=metadata, error=result.error)

        path = strategy.post_download(query, metadata) or _first_file(query.output_dir)
        if path is None:
            return DownloadResult(
                output_path=None,
                metadata=metadata,
                error="yt-dlp finished without writing a file",
            )
        return DownloadResult(output_path=path, metadata=metadata)

    def _run(self, command: list[str]) -> RunResult:
        with self._console.status("Downloading...", spinner="arrow3") as status:

            def on_progress(update: ProgressUpdate) -> None:
                if update.percent is None or update.percent < 2:
                    return
                status.update(_progress_text(update))

            return self._download_runner(command, on_progress, self._cancel_event)


def _progress_text(update: ProgressUpdate) -> str:
    text = f"[green]Download Progress: {update.percent:.0f}%[/]"
    if update.eta_seconds is not None:
        minutes, seconds = divmod(update.eta_seconds, 60)
        text += f" ETA {minutes:02d}:{seconds:02d}"
    return text


def _first_file(directory: Path) -> Path | None:
    files = sorted(
        (
            path
            for path in directory.iterdir()
            if path.is_file() and not path.name.endswith((".part", ".ytdl"))
        ),
        key=lambda path: path.name,
    )
    return files[0] if files else None
