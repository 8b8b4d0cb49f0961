from __future__ import annotations

import argparse
import logging
import sys
import threading
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from rich.console import Console

from .config import AppConfig, load_config, save_config
from .convert import FfmpegConverter
from .deps import missing_tools
from .download import YtDlpDownloader
from .log import setup_logging
from .paths import config_path
from .pipeline import ProcessingPipeline
from .probe import probe_duration
from .selector import TrimRangeSelector
from .settings import DEFAULT_CRF, DEFAULT_VIDEO_CODEC, VIDEO_CODECS, Settings
from .signals import sigint_sets
from .validation import (
    normalize_codec,
    normalize_resolution,
    validate_audio_bitrate,
    validate_crf,
    validate_inputs,
    validate_output_dir,
)

logger = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return version("clipconv")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipconv",
        description="Download and/or convert videos, optionally trimming them first.",
        epilog=f"Defaults are read from {config_path()}",
    )
    parser.add_argument("inputs", nargs="*", metavar="INPUT", help="Local media files or links")
    parser.add_argument("-o", "--output", help="Output directory (default: current directory)")
    parser.add_argument("-c", "--crf", type=int, help=f"Constant rate factor (default: {DEFAULT_CRF})")
    parser.add_argument("-b", "--audio-bitrate", type=int, help="Audio bitrate in kbps")
    parser.add_argument("-r", "--resolution", help="Output resolution, e.g. 720p")
    parser.add_argument(
        "--codec",
        help=f"Video codec: {', '.join(VIDEO_CODECS)} (default: {DEFAULT_VIDEO_CODEC})",
    )
    parser.add_argument("-t", "--trim", action="store_true", help="Pick a time range to keep before processing")
    parser.add_argument(
        "-s",
        "--sponsorblock",
        action="store_true",
        default=None,
        help="Remove sponsored segments from YouTube downloads",
    )
    parser.add_argument(
        "--no-multithread",
        dest="multi_thread",
        action="store_false",
        default=None,
        help="Run the encoder on a single thread",
    )
    parser.add_argument(
        "--save-defaults",
        action="store_true",
        help="Store the given options in the config file as new defaults",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-v", "--version", action="version", version=_package_version())
    return parser


def build_settings(args: argparse.Namespace, config: AppConfig) -> Settings:
    """Merge CLI arguments over config defaults and validate the result."""
    validate_inputs(list(args.inputs))

    output_value = args.output or config.output_dir
    output_dir = Path(output_value).expanduser() if output_value else Path.cwd()
    validate_output_dir(output_dir)

    crf = args.crf if args.crf is not None else config.crf or DEFAULT_CRF
    validate_crf(crf)

    audio_bitrate = args.audio_bitrate if args.audio_bitrate is not None else config.audio_bitrate
    validate_audio_bitrate(audio_bitrate)

    resolution = normalize_resolution(args.resolution or config.resolution)
    codec = normalize_codec(args.codec or config.video_codec) or DEFAULT_VIDEO_CODEC

    return Settings(
        inputs=tuple(args.inputs),
        output_dir=output_dir,
        crf=crf,
        video_codec=codec,
        audio_bitrate=audio_bitrate,
        resolution=resolution,
        trim=args.trim,
        sponsorblock=_first_set(args.sponsorblock, config.sponsorblock, False),
        multi_thread=_first_set(args.multi_thread, config.multi_thread, True),
    )


def updated_defaults(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    """Return ``config`` with every option given on the command line applied."""
    output_dir = None
    if args.output:
        output_dir = Path(args.output).expanduser().resolve()
        validate_output_dir(output_dir)
    if args.crf is not None:
        validate_crf(args.crf)
    if args.audio_bitrate is not None:
        validate_audio_bitrate(args.audio_bitrate)
    return replace(
        config,
        output_dir=str(output_dir) if output_dir else config.output_dir,
        crf=args.crf if args.crf is not None else config.crf,
        video_codec=normalize_codec(args.codec) or config.video_codec,
        audio_bitrate=args.audio_bitrate if args.audio_bitrate is not None else config.audio_bitrate,
        resolution=normalize_resolution(args.resolution) or config.resolution,
        sponsorblock=args.sponsorblock if args.sponsorblock is not None else config.sponsorblock,
        multi_thread=args.multi_thread if args.multi_thread is not None else config.multi_thread,
    )


def _first_set(*values: bool | None) -> bool:
    for value in values:
        if value is not None:
            return value
    return False


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console(stderr=True)
    setup_logging(console, verbose=args.verbose)

    if not args.inputs and not args.save_defaults:
        parser.print_help()
        return 0

    config, config_error = load_config()
    if config_error:
        logger.warning(config_error)

    if args.save_defaults:
        try:
            config = updated_defaults(args, config)
        except ValueError as exc:
            parser.error(str(exc))
        save_error = save_config(config)
        if save_error:
            console.print(f"[red]{save_error}[/]")
            return 1
        console.print(f"Saved defaults to [green]{config_path()}[/]")
        if not args.inputs:
            return 0

    try:
        settings = build_settings(args, config)
    except ValueError as exc:
        parser.error(str(exc))

    missing = missing_tools()
    if missing:
        for tool in missing:
            console.print(
                f"[red]Error: {tool} not found. Please install {tool} and ensure it's in your system's PATH.[/]"
            )
        return 1

    cancel_event = threading.Event()
    downloader = YtDlpDownloader(console=console, cancel_event=cancel_event)
    converter = FfmpegConverter(settings)
    pipeline = ProcessingPipeline(
        downloader,
        converter,
        probe_duration=probe_duration,
        selector_factory=lambda duration: TrimRangeSelector(
            duration,
            console=console,
            cancel_event=cancel_event,
        ),
        console=console,
        cancel_event=cancel_event,
    )
    with sigint_sets(cancel_event):
        result = pipeline.run(settings)
    return result.outcome.exit_code


def run() -> None:
    sys.exit(main())
