from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class TempResources:
    """Staging directories created during one run, removed by :meth:`cleanup`."""

    def __init__(self, root: Path | None = None) -> None:
        self._root = root
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def make_dir(self) -> Path:
        root = self._root or Path(tempfile.gettempdir())
        path = root / f"clipconv-{uuid.uuid4().hex[:6]}"
        path.mkdir(parents=True, exist_ok=False)
        self._paths.append(path)
        return path

    def cleanup(self) -> list[Path]:
        """Delete every recorded directory and return the ones that failed."""
        paths, self._paths = self._paths, []
        if not paths:
            return []
        logger.info("Cleaning up temporary directories...")
        failed: list[Path] = []
        for path in paths:
            if not path.exists():
                continue
            try:
                shutil.rmtree(path)
            except OSError as exc:
                logger.error("Failed to delete temporary directory %s: %s", path, exc)
                failed.append(path)
                continue
            logger.debug("Deleted temp dir %s", path)
        return failed
