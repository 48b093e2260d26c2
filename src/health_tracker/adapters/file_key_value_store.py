"""Key/value store keeping one JSON file per key."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from health_tracker.services.persistence import KeyValueStore

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores each blob as <root>/<key>.json, replaced atomically."""

    root: Path

    def read(self, key: str) -> bytes | None:
        """Return the file contents for key, or None when absent."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        """Write to a temp file, then swap it into place."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"
