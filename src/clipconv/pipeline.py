"""Batch coordinator: classify inputs, pick a trim range, download, convert.

Items are processed one at a time. A failure is recorded against its item and
the batch carries on; the only early exits are "no valid input" and the user
cancelling the trim selector.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from rich.console import Console
from rich.markup import escape

from .duration import DurationProbe, DurationResolver
from .models import (
    ConversionItem,
    DownloadQuery,
    DownloadResult,
    Link,
    LocalFile,
    MediaInput,
    TrimRange,
    VideoMetadata,
)
from .resources import TempResources
from .settings import Settings
from .timeparse import parse_range_output
from .validation import is_url

logger = logging.getLogger(__name__)


class Downloader(Protocol):
    def fetch_metadata(self, uri: str) -> VideoMetadata: ...

    def download(self, query: DownloadQuery, metadata: VideoMetadata | None = None) -> DownloadResult: ...


class Converter(Protocol):
    def convert(
        self,
        path: Path,
        metadata: VideoMetadata | None = None,
        trim: TrimRange | None = None,
    ) -> Path: ...


class RangeSelector(Protocol):
    def show(self) -> str: ...


SelectorFactory = Callable[[float], RangeSelector]


class RunOutcome(Enum):
    PROCESSED = "processed"
    NOTHING_PROCESSED = "nothing_processed"
    TRIM_CANCELLED = "trim_cancelled"
    INTERRUPTED = "interrupted"
    NO_VALID_INPUT = "no_valid_input"

    @property
    def exit_code(self) -> int:
        if self is RunOutcome.NO_VALID_INPUT:
            return 1
        if self is RunOutcome.INTERRUPTED:
            return 130
        return 0


@dataclass(frozen=True)
class ItemFailure:
    item: str
    stage: str
    error: str


@dataclass
class PipelineResult:
    outcome: RunOutcome
    converted: list[Path] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)
    trim: TrimRange | None = None


class _Interrupted(Exception):
    pass


def classify_inputs(raw_inputs: list[str] | tuple[str, ...]) -> list[MediaInput]:
    items: list[MediaInput] = []
    for value in raw_inputs:
        path = Path(value).expanduser()
        if path.is_file():
            items.append(LocalFile(path))
        elif is_url(value):
            items.append(Link(value.strip()))
        else:
            logger.warning("Ignoring input that is neither a file nor a link: %s", value)
    return items


class ProcessingPipeline:
    def __init__(
        self,
        downloader: Downloader,
        converter: Converter,
        *,
        probe_duration: DurationProbe,
        selector_factory: SelectorFactory,
        console: Console | None = None,
        cancel_event: threading.Event | None = None,
        temp_root: Path | None = None,
    ) -> None:
        self._downloader = downloader
        self._converter = converter
        self._resolver = DurationResolver(probe_duration, downloader.fetch_metadata)
        self._selector_factory = selector_factory
        self._console = console or Console(stderr=True)
        self._cancel_event = cancel_event or threading.Event()
        self._temp_root = temp_root

    def run(self, settings: Settings) -> PipelineResult:
        items = classify_inputs(settings.inputs)
        links = [item.uri for item in items if isinstance(item, Link)]
        local_files = [item.path for item in items if isinstance(item, LocalFile)]

        if not items:
            logger.warning("No valid input links or local files were provided.")
            return PipelineResult(RunOutcome.NO_VALID_INPUT)

        trim: TrimRange | None = None
        if settings.trim:
            duration = self._resolver.resolve(local_files, links)
            if duration is not None:
                selection = self._selector_factory(duration).show()
                if not selection:
                    logger.info("Trimming was cancelled by the user.")
                    return PipelineResult(RunOutcome.TRIM_CANCELLED)
                trim = _parse_selection(selection)

        result = PipelineResult(RunOutcome.NOTHING_PROCESSED, trim=trim)
        resources = TempResources(self._temp_root)
        try:
            downloaded = self._download_all(links, settings, trim, resources, result)
            local_items = [ConversionItem(path) for path in local_files]

            processed = False
            # Downloads were already cut by yt-dlp, so only local files get the range.
            if downloaded:
                self._convert_all(downloaded, None, result)
                processed = True
            if local_items:
                self._convert_all(local_items, trim, result)
                processed = True
        except _Interrupted:
            logger.warning("Interrupted; skipping the remaining items.")
            result.outcome = RunOutcome.INTERRUPTED
        else:
            if processed:
                result.outcome = RunOutcome.PROCESSED
            else:
                logger.info("No videos were successfully processed for conversion.")
        finally:
            resources.cleanup()
        return result

    def _download_all(
        self,
        links: list[str],
        settings: Settings,
        trim: TrimRange | None,
        resources: TempResources,
        result: PipelineResult,
    ) -> list[ConversionItem]:
        if not links:
            return []
        logger.info("Starting download of %d links...", len(links))
        items: list[ConversionItem] = []
        for link in links:
            self._check_interrupt()
            item = self._download_one(link, settings, trim, resources, result)
            if item is not None:
                items.append(item)
        return items

    def _download_one(
        self,
        link: str,
        settings: Settings,
        trim: TrimRange | None,
        resources: TempResources,
        result: PipelineResult,
    ) -> ConversionItem | None:
        try:
            metadata = self._downloader.fetch_metadata(link)
            query = DownloadQuery(
                uri=link,
                output_dir=resources.make_dir(),
                trim=trim,
                sponsorblock=settings.sponsorblock,
            )
            download = self._downloader.download(query, metadata)
        except Exception as exc:
            return self._download_failed(link, str(exc), result)

        if download.output_path is None:
            return self._download_failed(link, download.error or "no output file", result)

        self._console.print(f"Downloaded video to: [green]{escape(str(download.output_path))}[/]")
        return ConversionItem(download.output_path, download.metadata or metadata)

    def _download_failed(self, link: str, error: str, result: PipelineResult) -> None:
        logger.error("Failed to download video from %s: %s", link, error)
        result.failures.append(ItemFailure(item=link, stage="download", error=error))
        return None

    def _convert_all(
        self,
        items: list[ConversionItem],
        trim: TrimRange | None,
        result: PipelineResult,
    ) -> None:
        logger.info("Starting conversion of %d files...", len(items))
        for item in items:
            self._check_interrupt()
            try:
                output = self._converter.convert(item.path, item.metadata, trim)
            except Exception as exc:
                logger.error("Failed to convert video %s: %s", item.path, exc)
                self._console.print(
                    f"[red]Failed to convert video: {escape(item.path.name)} - {escape(str(exc))}[/]"
                )
                result.failures.append(ItemFailure(item=str(item.path), stage="convert", error=str(exc)))
                continue
            self._console.print(f"Converted video: [green]{escape(item.path.name)}[/]")
            result.converted.append(output)

    def _check_interrupt(self) -> None:
        if self._cancel_event.is_set():
            raise _Interrupted()


def _parse_selection(selection: str) -> TrimRange | None:
    try:
        start, end = parse_range_output(selection)
    except ValueError:
        logger.warning("Invalid trim input '%s'. Skipping trim.", selection)
        return None
    return TrimRange.from_bounds(start, end)
