from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

from clipconv.convert import (
    FfmpegConverter,
    _run_subprocess,
    build_ffmpeg_command,
    output_path_for,
    sanitize_filename,
)
from clipconv.errors import ConversionError
from clipconv.models import TrimRange, VideoMetadata
from clipconv.probe import MediaInfo
from clipconv.settings import Settings

_VIDEO = MediaInfo(duration=60.0, has_video=True, has_audio=True, fps=60.0, width=1920, height=1080)


def _settings(tmp_path: Path, **kwargs) -> Settings:
    return Settings(inputs=(), output_dir=tmp_path, **kwargs)


def _value(command: list[str], flag: str) -> str:
    return command[command.index(flag) + 1]


def test_h264_command_defaults(tmp_path: Path) -> None:
    cmd = build_ffmpeg_command(Path("in.mkv"), tmp_path / "out.mp4", _VIDEO, _settings(tmp_path))
    assert cmd[0] == "ffmpeg"
    assert _value(cmd, "-c:v") == "libx264"
    assert _value(cmd, "-crf") == "25"
    assert _value(cmd, "-preset") == "veryslow"
    assert _value(cmd, "-pix_fmt") == "yuv420p"
    assert _value(cmd, "-c:a") == "aac"
    assert _value(cmd, "-movflags") == "+faststart"
    assert "-ss" not in cmd
    assert cmd[-1] == str(tmp_path / "out.mp4")


def test_trim_args_surround_input(tmp_path: Path) -> None:
    trim = TrimRange(start=12.5, duration=30.0)
    cmd = build_ffmpeg_command(Path("in.mkv"), tmp_path / "out.mp4", _VIDEO, _settings(tmp_path), trim)
    assert cmd.index("-ss") < cmd.index("-i") < cmd.index("-t")
    assert _value(cmd, "-ss") == "12.5"
    assert _value(cmd, "-t") == "30"


def test_av1_uses_opus_and_ten_bit(tmp_path: Path) -> None:
    settings = _settings(tmp_path, video_codec="av1", audio_bitrate=160)
    cmd = build_ffmpeg_command(Path("in.mkv"), tmp_path / "out.webm", _VIDEO, settings)
    assert _value(cmd, "-c:v") == "libaom-av1"
    assert _value(cmd, "-pix_fmt") == "yuv420p10le"
    assert _value(cmd, "-cpu-used") == "6"
    assert _value(cmd, "-c:a") == "libopus"
    assert _value(cmd, "-b:a") == "160k"
    assert "-movflags" not in cmd


def test_vp9_resolution_and_single_thread(tmp_path: Path) -> None:
    settings = _settings(tmp_path, video_codec="vp9", resolution="720p", multi_thread=False)
    cmd = build_ffmpeg_command(Path("in.mkv"), tmp_path / "out.webm", _VIDEO, settings)
    assert _value(cmd, "-c:v") == "libvpx-vp9"
    assert _value(cmd, "-b:v") == "0"
    assert _value(cmd, "-vf") == "scale=-2:720"
    assert _value(cmd, "-threads") == "1"


def test_audio_only_input(tmp_path: Path) -> None:
    info = MediaInfo(duration=10.0, has_video=False, has_audio=True)
    cmd = build_ffmpeg_command(Path("in.m4a"), tmp_path / "out.mp4", info, _settings(tmp_path))
    assert "-vn" in cmd
    assert "-c:v" not in cmd


def test_no_streams_is_an_error(tmp_path: Path) -> None:
    info = MediaInfo(duration=None, has_video=False, has_audio=False)
    with pytest.raises(ConversionError, match="no video or audio stream"):
        build_ffmpeg_command(Path("in.bin"), tmp_path / "out.mp4", info, _settings(tmp_path))


def test_output_path_prefers_title_and_avoids_collisions(tmp_path: Path) -> None:
    metadata = VideoMetadata(
        video_id="abc",
        title='A "great" clip: part 1/2',
        uploader=None,
        duration=1.0,
        webpage_url=None,
    )
    settings = _settings(tmp_path)
    first = output_path_for(Path("stage/abc.mp4"), metadata, settings)
    assert first == tmp_path / "A great clip part 12.mp4"
    first.write_bytes(b"x")
    assert output_path_for(Path("stage/abc.mp4"), metadata, settings) == tmp_path / "A great clip part 12-1.mp4"


def test_output_path_never_overwrites_input(tmp_path: Path) -> None:
    source = tmp_path / "movie.mp4"
    source.write_bytes(b"x")
    assert output_path_for(source, None, _settings(tmp_path)) == tmp_path / "movie-1.mp4"


def test_sanitize_filename() -> None:
    assert sanitize_filename("  a<b>c  ") == "abc"
    assert sanitize_filename("...") == ""


def test_converter_runs_ffmpeg(tmp_path: Path) -> None:
    source = tmp_path / "in.mkv"
    source.write_bytes(b"x")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    commands: list[list[str]] = []

    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        commands.append(command)
        Path(command[-1]).write_bytes(b"converted")
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

    converter = FfmpegConverter(_settings(out_dir), runner=runner, prober=lambda path: _VIDEO)
    output = converter.convert(source, None, TrimRange(start=1.0, duration=2.0))
    assert output == out_dir / "in.mp4"
    assert output.exists()
    assert "-ss" in commands[0]


def test_converter_reports_ffmpeg_failure(tmp_path: Path) -> None:
    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(command, 1, stdout="", stderr="line\nInvalid data found")

    converter = FfmpegConverter(_settings(tmp_path), runner=runner, prober=lambda path: _VIDEO)
    with pytest.raises(ConversionError, match="Invalid data found"):
        converter.convert(tmp_path / "in.mkv")


def test_run_subprocess_tolerates_undecodable_output() -> None:
    script = "import sys; sys.stderr.buffer.write(b'bad \\xff name\\n'); sys.exit(1)"
    completed = _run_subprocess([sys.executable, "-c", script])
    assert completed.returncode == 1
    assert completed.stderr.startswith("bad \ufffd name")
