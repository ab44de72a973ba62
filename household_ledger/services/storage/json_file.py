"""
JSON File Storage

One UTF-8 JSON file per key inside a data directory. This is the default
backend: it needs no credentials and the files are readable by hand.

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write never leaves a half-written payload.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

from household_ledger.services.storage.interface import (
    PersistenceInterface,
    StorageError,
)


_VALID_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonFileStorage(PersistenceInterface):
    """File-per-key persistence."""

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    async def read_raw(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    async def write_raw(self, key: str, payload: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    async def discard(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}")
