from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable

from .paths import config_path

CONFIG_VERSION = 1


@dataclass
class AppConfig:
    version: int = CONFIG_VERSION
    output_dir: str | None = None
    crf: int | None = None
    video_codec: str | None = None
    audio_bitrate: int | None = None
    resolution: str | None = None
    sponsorblock: bool | None = None
    multi_thread: bool | None = None


def load_config(path: Path | None = None) -> tuple[AppConfig, str | None]:
    path = path or config_path()
    if not path.exists():
        return AppConfig(), None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        return AppConfig(), f"Failed to read config: {path} ({exc})"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return AppConfig(), f"Config file is not valid JSON: {path}"
    if not isinstance(data, dict):
        return AppConfig(), f"Config file must be a JSON object: {path}"
    return _parse_config_data(data), None


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    path = path or config_path()
    payload = {key: value for key, value in asdict(config).items() if value is not None}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        return f"Failed to write config: {path} ({exc})"
    return None


def _parse_config_data(data: dict[str, Any]) -> AppConfig:
    values = {name: parse(data.get(name)) for name, parse in _FIELD_PARSERS.items()}
    version = data.get("version")
    if isinstance(version, int) and not isinstance(version, bool) and version > 0:
        values["version"] = version
    return AppConfig(**values)


def _text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _flag(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value) if value > 0 else None


_FIELD_PARSERS: dict[str, Callable[[Any], Any]] = {
    "output_dir": _text,
    "crf": _positive_int,
    "video_codec": _text,
    "audio_bitrate": _positive_int,
    "resolution": _text,
    "sponsorblock": _flag,
    "multi_thread": _flag,
}
