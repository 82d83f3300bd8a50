"""
Durable round-trip of the whole worker collection through a byte store.

load() is "read-or-default": on first run, or when the stored blob is
corrupt, it writes the default collection back (exactly one save) and returns
a fresh copy of it. save() never raises; it reports failure as False so the
caller can roll back its in-memory change.
"""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from sanaee.core.config import STORAGE_KEY, Settings
from sanaee.domain.workers import DEFAULT_WORKERS, InvalidRecordError, WorkerRecord
from sanaee.repositories.kv_store import KeyValueStore, MemoryKeyValueStore, QuotaExceededError

logger = logging.getLogger(__name__)


def build_key_value_store(settings: Settings) -> KeyValueStore:
    """Pick the configured byte store backend."""
    quota = settings.storage_quota_bytes
    if settings.storage_backend == "memory":
        return MemoryKeyValueStore(capacity_bytes=quota)
    if settings.storage_backend == "sql":
        from sanaee.repositories.sql_repository import SQLKeyValueStore

        return SQLKeyValueStore(capacity_bytes=quota)
    from sanaee.repositories.json_storage import JsonFileKeyValueStore

    return JsonFileKeyValueStore(settings.data_file, capacity_bytes=quota)


class WorkerStore:
    def __init__(
        self,
        backend: KeyValueStore,
        key: str = STORAGE_KEY,
        defaults: Sequence[Mapping[str, Any]] = DEFAULT_WORKERS,
    ) -> None:
        self.backend = backend
        self.key = key
        self._defaults = tuple(copy.deepcopy(dict(item)) for item in defaults)
        self.last_error: Optional[Exception] = None

    def defaults(self) -> list[WorkerRecord]:
        return [WorkerRecord.from_dict(raw) for raw in copy.deepcopy(self._defaults)]

    def load(self) -> list[WorkerRecord]:
        try:
            raw = self.backend.get_item(self.key)
        except Exception:
            logger.warning("Could not read %r from the byte store; reseeding defaults.", self.key, exc_info=True)
            return self._reseed()
        if not raw:
            logger.info("No stored workers under %r; seeding defaults.", self.key)
            return self._reseed()
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored workers under %r are corrupt; resetting to defaults.", self.key)
            return self._reseed()
        if not isinstance(parsed, list):
            logger.warning(
                "Stored workers under %r are a %s, not a list; resetting to defaults.",
                self.key,
                type(parsed).__name__,
            )
            return self._reseed()
        return self._records_from(parsed)

    def save(self, workers: Iterable[WorkerRecord]) -> bool:
        try:
            payload = json.dumps([worker.to_dict() for worker in workers], ensure_ascii=False)
            self.backend.set_item(self.key, payload)
        except QuotaExceededError as exc:
            self.last_error = exc
            logger.warning("Storage is full, workers not saved: %s", exc)
            return False
        except Exception as exc:
            self.last_error = exc
            logger.error("Failed to save workers under %r", self.key, exc_info=True)
            return False
        self.last_error = None
        return True

    def _reseed(self) -> list[WorkerRecord]:
        workers = self.defaults()
        self.save(workers)
        return self.defaults()

    def _records_from(self, items: list) -> list[WorkerRecord]:
        records: list[WorkerRecord] = []
        seen: set[str] = set()
        for item in items:
            try:
                record = WorkerRecord.from_dict(item)
            except InvalidRecordError as exc:
                logger.warning("Skipping unusable stored worker: %s", exc)
                continue
            if record.id in seen:
                logger.warning("Skipping duplicate stored worker id %s", record.id)
                continue
            seen.add(record.id)
            records.append(record)
        return records
