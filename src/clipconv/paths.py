from __future__ import annotations

from pathlib import Path

from platformdirs import user_config_path

APP_NAME = "clipconv"


def config_path() -> Path:
    """Location of the defaults file; the directory is created on first save."""
    return user_config_path(APP_NAME) / "config.json"
