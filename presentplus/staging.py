"""Copy resolved theme folders into request-reachable staging directories."""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

STAGING_PUBLIC_ROOT = PurePosixPath("static", "tmp")


class StagingSequence:
    """Hand out monotonically increasing staging indices.

    Safe to share between request threads; no index is ever handed out twice.
    """

    def __init__(self, start: int = 0) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            index = self._next
            self._next += 1
        return index

    def peek(self) -> int:
        with self._lock:
            return self._next


class AssetStager:
    """Stage a theme folder's files under ``<staging_root>/<index>``."""

    def __init__(self, staging_root: Path, sequence: StagingSequence | None = None) -> None:
        self._staging_root = staging_root
        self._sequence = sequence or StagingSequence()

    @property
    def staging_root(self) -> Path:
        return self._staging_root

    def stage(self, theme_dir: Path) -> str | None:
        """Copy the files of ``theme_dir`` and return the public staging path.

        Returns ``None`` when the staging directory cannot be created or the
        theme folder cannot be read. Individual copy failures are logged and
        skipped.
        """
        index = self._sequence.next()
        target_dir = self._staging_root / str(index)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Error creating staging directory %s: %s", target_dir, exc)
            return None

        try:
            items = sorted(theme_dir.iterdir())
        except OSError as exc:
            logger.error("Error opening theme directory %s: %s", theme_dir, exc)
            return None

        for item in items:
            if item.is_dir():
                logger.debug("Skipping nested folder %s while staging theme", item)
                continue
            try:
                # shutil.copy keeps the permission bits of the source file.
                shutil.copy(item, target_dir / item.name)
            except OSError as exc:
                logger.warning("Error copying theme file '%s' to %s: %s", item.name, target_dir, exc)

        return (STAGING_PUBLIC_ROOT / str(index)).as_posix()


def reset_directory(path: Path) -> None:
    """Remove a directory and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
