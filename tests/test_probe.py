import json
import subprocess
from pathlib import Path

import pytest

from clipconv.errors import ProbeError
from clipconv.probe import probe_duration, probe_media

_PROBE_OUTPUT = {
    "streams": [
        {"codec_type": "video", "r_frame_rate": "30000/1001", "width": 1920, "height": 1080},
        {"codec_type": "audio", "sample_rate": "48000"},
    ],
    "format": {"duration": "123.456"},
}


def _runner(returncode: int, stdout: str):
    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        assert command[0] == "ffprobe"
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr="")

    return runner


def test_probe_media() -> None:
    info = probe_media(Path("in.mp4"), runner=_runner(0, json.dumps(_PROBE_OUTPUT)))
    assert info.duration == pytest.approx(123.456)
    assert info.has_video and info.has_audio
    assert info.fps == pytest.approx(29.97, rel=1e-3)
    assert (info.width, info.height) == (1920, 1080)


def test_probe_audio_only() -> None:
    data = {"streams": [{"codec_type": "audio"}], "format": {"duration": "5"}}
    info = probe_media(Path("in.m4a"), runner=_runner(0, json.dumps(data)))
    assert not info.has_video
    assert info.has_audio
    assert info.fps is None


def test_probe_duration_errors() -> None:
    with pytest.raises(ProbeError):
        probe_duration(Path("in.mp4"), runner=_runner(1, ""))
    with pytest.raises(ProbeError):
        probe_duration(Path("in.mp4"), runner=_runner(0, "not json"))
    with pytest.raises(ProbeError, match="No duration"):
        probe_duration(Path("in.mp4"), runner=_runner(0, json.dumps({"streams": [], "format": {}})))
