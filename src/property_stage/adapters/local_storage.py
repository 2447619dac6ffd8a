"""JSON-file key/value storage for client-local state."""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass
class JsonFileStorage:
    """Stores one JSON document per key under a directory.

    Writes replace the whole file, so two processes sharing a directory get
    last-write-wins semantics.
    """

    root: Path

    def get_item(self, key: str) -> object | None:
        """Return the decoded value for a key, or None if missing or corrupt."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable storage entry %s", key)
            return None

    def set_item(self, key: str, value: object) -> None:
        """Write a value atomically."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(value), encoding="utf-8")
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"
