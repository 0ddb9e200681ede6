"""
JSON File Key-Value Storage

The category and client lists live on the user's machine, not in the
remote store. The whole document is read on startup and rewritten after
every mutation; it is small (tens of entries).

Writes go to a temporary file that is then renamed over the original,
so a crash mid-write leaves the previous document intact.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from cashledger.config import get_settings
from cashledger.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
)


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """Key-value store backed by a single JSON object on disk."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().taxonomy.storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}", cause=e)
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected document in {self._path}: not an object")
        return data

    def load(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value

        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, default=str)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}", cause=e)
