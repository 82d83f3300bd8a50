"""
Worker directory use cases: add and delete workers, filters and stats.

WorkerDirectory is the single owner of the in-memory collection. Every
mutation is applied to a working copy, persisted, and only then made
authoritative; a failed save leaves the previous collection in place.
"""
from __future__ import annotations

import enum
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from sanaee.domain.validation import ValidationResult, validate_form
from sanaee.domain.workers import SPECIALTIES, WorkerRecord
from sanaee.repositories.kv_store import QuotaExceededError
from sanaee.services.image_service import ImageUpload, compress
from sanaee.services.storage_service import WorkerStore

logger = logging.getLogger(__name__)

ALL = "all"

Compressor = Callable[[ImageUpload], Awaitable[str]]


class IngestionState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMPRESSING = "compressing"
    PERSISTING = "persisting"
    ROLLED_BACK = "rolled_back"
    COMMITTED = "committed"


class IngestionError(Exception):
    """Base exception for the add/delete workflow."""


class ValidationFailedError(IngestionError):
    """Raised when one or more form fields break their rule."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__("; ".join(result.errors.values()))
        self.result = result


class WorkerNotSavedError(IngestionError):
    """Raised after a rollback when the store refused the write."""

    def __init__(self, message: str = "تعذر حفظ البيانات، حاول مرة أخرى.") -> None:
        super().__init__(message)


class StorageFullError(WorkerNotSavedError):
    def __init__(self) -> None:
        super().__init__("⚠️ ذاكرة المتصفح ممتلئة! احذف بعض الصور أو بيانات قديمة.")


class StalePreviewError(Exception):
    """Raised when a preview result arrives after a newer request or after close()."""


class WorkerDirectory:
    def __init__(self, store: WorkerStore, compressor: Compressor = compress) -> None:
        self.store = store
        self.compressor = compressor
        self.state = IngestionState.IDLE
        self._workers: list[WorkerRecord] = []

    # -------------------------- reads --------------------------
    def load(self) -> list[WorkerRecord]:
        self._workers = self.store.load()
        logger.info("Loaded %d workers", len(self._workers))
        return self.workers

    @property
    def workers(self) -> list[WorkerRecord]:
        return list(self._workers)

    def get_worker(self, worker_id: str) -> Optional[WorkerRecord]:
        return next((w for w in self._workers if w.id == worker_id), None)

    def filter_workers(self, specialty: str = ALL, area: str = ALL) -> list[WorkerRecord]:
        specialty = (specialty or ALL).strip()
        area = (area or ALL).strip()
        return [
            w
            for w in self._workers
            if (specialty == ALL or w.specialty == specialty) and (area == ALL or w.area == area)
        ]

    def areas(self) -> list[str]:
        return sorted({w.area for w in self._workers})

    def stats(self) -> dict[str, int]:
        return {
            "total_workers": len(self._workers),
            "total_areas": len({w.area for w in self._workers}),
            "total_specialties": len(SPECIALTIES),
        }

    # -------------------------- writes --------------------------
    async def add_worker(self, values: Mapping[str, Any], image: Optional[ImageUpload] = None) -> WorkerRecord:
        """Validate, compress the optional photo, then persist the new worker first in line."""
        try:
            self._enter(IngestionState.VALIDATING)
            result = validate_form(values)
            if not result.valid:
                logger.info("Add worker rejected, invalid fields: %s", ", ".join(result.errors))
                raise ValidationFailedError(result)

            image_data = None
            if image is not None:
                self._enter(IngestionState.COMPRESSING)
                image_data = await self.compressor(image)

            record = WorkerRecord.create(
                name=str(values.get("name", "")),
                specialty=str(values.get("specialty", "")),
                area=str(values.get("area", "")),
                phone=str(values.get("phone", "")),
                rating=values.get("rating", 5),
                image=image_data,
            )
            self._enter(IngestionState.PERSISTING)
            # Build from the collection as it is now, not as it was before the await.
            self._commit([record, *self._workers])
            logger.info("Added worker %s (%s)", record.id, record.specialty)
            return record
        finally:
            self._enter(IngestionState.IDLE)

    def delete_worker(self, worker_id: str) -> bool:
        """Remove a worker by id; an unknown id still persists the unchanged collection."""
        try:
            self._enter(IngestionState.PERSISTING)
            working = [w for w in self._workers if w.id != worker_id]
            removed = len(working) != len(self._workers)
            self._commit(working)
            if removed:
                logger.info("Deleted worker %s", worker_id)
            return removed
        finally:
            self._enter(IngestionState.IDLE)

    def _commit(self, working: list[WorkerRecord]) -> None:
        if self.store.save(working):
            self._workers = working
            self._enter(IngestionState.COMMITTED)
            return
        self._enter(IngestionState.ROLLED_BACK)
        if isinstance(self.store.last_error, QuotaExceededError):
            raise StorageFullError()
        raise WorkerNotSavedError()

    def _enter(self, state: IngestionState) -> None:
        logger.debug("Ingestion %s -> %s", self.state.value, state.value)
        self.state = state


class PreviewSession:
    """
    Photo previews for one open add-worker form.

    Only the most recently issued preview may be applied; closing the form
    invalidates everything still in flight.
    """

    def __init__(self, compressor: Compressor = compress) -> None:
        self.compressor = compressor
        self._latest = 0
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def is_current(self, ticket: int) -> bool:
        return self._open and ticket == self._latest

    async def preview(self, file: ImageUpload) -> str:
        if not self._open:
            raise StalePreviewError("Preview session is closed")
        self._latest += 1
        ticket = self._latest
        encoded = await self.compressor(file)
        if not self.is_current(ticket):
            logger.debug("Discarding stale preview %d (latest is %d)", ticket, self._latest)
            raise StalePreviewError(f"Preview {ticket} superseded")
        return encoded

    def close(self) -> None:
        self._open = False
        self._latest += 1
