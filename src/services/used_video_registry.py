"""Persistent record of stock videos already used in generated shorts.

The registry is a single JSON document mapping video id to the list of
topics/keyword sets it was used for. Once an id is recorded it is never
offered again by the search step, across runs.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class UsedResourceRegistry:
    """Append-only, file-backed registry of consumed media resources.

    Every call reads the whole document; every mark rewrites it. This is
    fine for a handful of marks per run in a single process, but two
    processes sharing the same file can lose each other's writes.
    """

    def __init__(self, registry_path: Union[str, Path]):
        """Initialize registry.

        Args:
            registry_path: Path to the JSON backing file (created on first mark)
        """
        self.registry_path = Path(registry_path)
        self._lock = threading.Lock()

    def load(self) -> dict[str, list[str]]:
        """Load the full registry document.

        Returns:
            Mapping of resource id to usage contexts; empty if the file is absent

        Raises:
            OSError, json.JSONDecodeError: For any failure other than absence
        """
        try:
            with self.registry_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No registry at {self.registry_path}, starting empty")
            return {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Registry {self.registry_path} is not a JSON object"
            )
        return data

    def _save(self, data: dict[str, list[str]]) -> None:
        """Replace the backing file atomically and durably."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.registry_path.name}.", dir=str(self.registry_path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.registry_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def is_used(self, resource_id: Union[str, int]) -> bool:
        """Check whether a resource id is present, even with no usage contexts."""
        return str(resource_id) in self.load()

    def usages(self, resource_id: Union[str, int]) -> list[str]:
        """Get the recorded usage contexts for a resource, oldest first."""
        return list(self.load().get(str(resource_id), []))

    def mark_used(self, resource_id: Union[str, int], context: str) -> None:
        """Record that a resource was used; durable when this returns.

        Args:
            resource_id: Provider id of the resource
            context: Free-text description of where it was used
        """
        key = str(resource_id)
        logger.info(f"Marking video {key} as used for \"{context}\"")
        with self._lock:
            data = self.load()
            data.setdefault(key, []).append(context)
            self._save(data)
        logger.debug(f"Registry updated: {self.registry_path}")
