"""Key-value byte store backed by a SQLAlchemy table."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from sanaee.core.config import DEFAULT_STORAGE_QUOTA
from sanaee.db.create_tables import ensure_schema
from sanaee.db.models import KeyValueEntry
from sanaee.db.session import get_session
from sanaee.repositories.kv_store import KeyValueStore, KeyValueStoreError, encoded_size


class SQLKeyValueStore(KeyValueStore):
    """Rows of (key, value) in kv_entries, bounded like the other stores."""

    def __init__(self, capacity_bytes: int = DEFAULT_STORAGE_QUOTA, create_schema: bool = True) -> None:
        super().__init__(capacity_bytes)
        if create_schema:
            ensure_schema()

    def get_item(self, key: str) -> Optional[str]:
        with get_session() as session:
            entity = session.get(KeyValueEntry, key)
            return entity.value if entity else None

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        now = datetime.now(timezone.utc)
        try:
            with get_session() as session:
                entity = session.get(KeyValueEntry, key)
                if not entity:
                    session.add(KeyValueEntry(key=key, value=value, updated_at=now))
                else:
                    entity.value = value
                    entity.updated_at = now
                session.commit()
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Could not write key {key!r}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        with get_session() as session:
            session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            session.commit()

    def used_bytes(self) -> int:
        with get_session() as session:
            rows = session.execute(select(KeyValueEntry.key, KeyValueEntry.value)).all()
        return sum(encoded_size(key, value) for key, value in rows)
