"""Temporary working files for one shortsmith run."""

import logging
import re
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class TempFileManager:
    """Hands out paths inside the temp directory and removes them on cleanup."""

    def __init__(self, temp_dir: Union[str, Path]):
        self.temp_dir = Path(temp_dir)
        self.active_files: set[Path] = set()

    def init_temp_dir(self) -> None:
        """Start from an empty temp directory.

        Raises:
            OSError: If the directory cannot be recreated
        """
        logger.info(f"Initializing temp directory: {self.temp_dir}")
        if self.temp_dir.exists():
            for child in self.temp_dir.iterdir():
                try:
                    if child.is_dir():
                        shutil.rmtree(child)
                    else:
                        child.unlink()
                except OSError as e:
                    logger.warning(f"Failed to delete {child.name}: {e}")
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self.active_files.clear()

    def get_temp_path(self, filename: str) -> Path:
        """Return a tracked path inside the temp directory."""
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        path = self.temp_dir / filename
        self.active_files.add(path)
        return path

    def cleanup(self) -> int:
        """Delete every tracked file, best effort.

        Returns:
            Number of files deleted
        """
        logger.info("Cleaning up temporary files...")
        deleted = 0
        for path in list(self.active_files):
            if not path.exists():
                continue
            try:
                path.unlink()
                deleted += 1
                logger.debug(f"Deleted: {path.name}")
            except OSError as e:
                logger.error(f"Failed to delete {path.name}: {e}")
        self.active_files.clear()

        if self.temp_dir.exists():
            remaining = list(self.temp_dir.iterdir())
            if not remaining:
                try:
                    self.temp_dir.rmdir()
                    logger.debug("Temp directory removed")
                except OSError as e:
                    logger.error(f"Failed to remove temp directory: {e}")
            else:
                logger.info(f"{len(remaining)} files left in temp directory after cleanup")
        return deleted


def sanitize_file_name(name: str) -> str:
    """Turn a topic into a safe lowercase file stem.

    Keeps ASCII letters, digits and Hangul; everything else becomes "_".
    """
    cleaned = re.sub(r"[^a-zA-Z0-9가-힣]", "_", name)
    cleaned = re.sub(r"_+", "_", cleaned)
    return cleaned.strip("_").lower()
