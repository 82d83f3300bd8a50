"""
JSON-file persistence adapter.

All keys live in one JSON document on disk (data.json by default), each
mapped to its string value, the same way the whole directory used to be kept
in a single browser storage slot.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional
import json
import logging
import os
import tempfile

from sanaee.core.config import DEFAULT_STORAGE_QUOTA
from sanaee.repositories.kv_store import KeyValueStore, KeyValueStoreError, encoded_size

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    def __init__(self, path: str | Path, capacity_bytes: int = DEFAULT_STORAGE_QUOTA) -> None:
        super().__init__(capacity_bytes)
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Data file %s is unreadable or not valid JSON (%s); treating it as empty.", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Data file %s does not hold an object; treating it as empty.", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".sanaee-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise KeyValueStoreError(f"Could not write {self.path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items)

    def used_bytes(self) -> int:
        return sum(encoded_size(k, v) for k, v in self._read_all().items())
