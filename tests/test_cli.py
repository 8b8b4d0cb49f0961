from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from clipconv import app
from clipconv.app import build_parser, build_settings, main
from clipconv.config import AppConfig, load_config, save_config
from clipconv.paths import config_path
from clipconv.pipeline import PipelineResult, RunOutcome


def _args(*argv: str) -> argparse.Namespace:
    return build_parser().parse_args(list(argv))


def test_help_mentions_config_path(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert "clipconv" in out
    assert "config.json" in out
    assert config_path().name == "config.json"


def test_no_inputs_prints_help(capsys) -> None:
    assert main([]) == 0
    assert "INPUT" in capsys.readouterr().out


def test_build_settings_cli_overrides_config(tmp_path: Path) -> None:
    config = AppConfig(output_dir=str(tmp_path), crf=30, video_codec="vp9", sponsorblock=True)
    args = _args("https://example.com/v/1", "-c", "28", "--codec", "h265", "-r", "1080", "--trim")
    settings = build_settings(args, config)
    assert settings.output_dir == tmp_path
    assert settings.crf == 28
    assert settings.video_codec == "h265"
    assert settings.resolution == "1080p"
    assert settings.trim is True
    assert settings.sponsorblock is True
    assert settings.multi_thread is True


def test_build_settings_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = build_settings(_args("https://example.com/v/1", "--no-multithread"), AppConfig())
    assert settings.output_dir == tmp_path
    assert settings.crf == 25
    assert settings.video_codec == "h264"
    assert settings.container == "mp4"
    assert settings.sponsorblock is False
    assert settings.multi_thread is False


def test_invalid_crf_is_a_usage_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "load_config", lambda: (AppConfig(), None))
    with pytest.raises(SystemExit) as exc:
        main(["https://example.com/v/1", "-o", str(tmp_path), "-c", "99"])
    assert exc.value.code == 2


def test_missing_tools_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "load_config", lambda: (AppConfig(), None))
    monkeypatch.setattr(app, "missing_tools", lambda: ["yt-dlp"])
    assert main(["https://example.com/v/1", "-o", str(tmp_path)]) == 1


def test_main_returns_pipeline_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    def fake_run(self, settings):
        seen.append(settings)
        return PipelineResult(RunOutcome.INTERRUPTED)

    monkeypatch.setattr(app, "load_config", lambda: (AppConfig(), None))
    monkeypatch.setattr(app, "missing_tools", lambda: [])
    monkeypatch.setattr(app.ProcessingPipeline, "run", fake_run)
    assert main(["https://example.com/v/1", "-o", str(tmp_path)]) == 130
    assert seen[0].inputs == ("https://example.com/v/1",)


def test_help_does_not_create_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    root = tmp_path / "config-root"
    monkeypatch.setattr("clipconv.paths.user_config_path", lambda name: root)
    with pytest.raises(SystemExit):
        main(["--help"])
    assert "config.json" in capsys.readouterr().out
    assert not root.exists()


def test_save_defaults_writes_given_options(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path / "config-root"
    monkeypatch.setattr("clipconv.paths.user_config_path", lambda name: root)
    assert main(["--save-defaults", "-c", "30", "--codec", "VP9", "-o", str(tmp_path), "-s"]) == 0

    saved, error = load_config(root / "config.json")
    assert error is None
    assert saved.crf == 30
    assert saved.video_codec == "vp9"
    assert saved.output_dir == str(tmp_path.resolve())
    assert saved.sponsorblock is True
    assert saved.multi_thread is None


def test_save_defaults_keeps_existing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path / "config-root"
    monkeypatch.setattr("clipconv.paths.user_config_path", lambda name: root)
    save_config(AppConfig(crf=28, resolution="720p"), root / "config.json")
    assert main(["--save-defaults", "--no-multithread"]) == 0

    saved, _ = load_config(root / "config.json")
    assert saved == AppConfig(crf=28, resolution="720p", multi_thread=False)


def test_save_defaults_rejects_invalid_crf(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path / "config-root"
    monkeypatch.setattr("clipconv.paths.user_config_path", lambda name: root)
    with pytest.raises(SystemExit) as exc:
        main(["--save-defaults", "-c", "99"])
    assert exc.value.code == 2
    assert not root.exists()
