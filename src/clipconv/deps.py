from __future__ import annotations

import shutil

REQUIRED_TOOLS = ("ffmpeg", "ffprobe", "yt-dlp")


def missing_tools(tools: tuple[str, ...] = REQUIRED_TOOLS) -> list[str]:
    return [tool for tool in tools if shutil.which(tool) is None]
