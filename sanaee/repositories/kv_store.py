"""Key-value byte store contract with a fixed capacity ceiling."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from sanaee.core.config import DEFAULT_STORAGE_QUOTA


class KeyValueStoreError(Exception):
    """Base exception for byte store failures."""


class QuotaExceededError(KeyValueStoreError):
    """Raised when a write would push the store past its capacity."""

    def __init__(self, needed: int, capacity: int) -> None:
        super().__init__(f"Write needs {needed} bytes, capacity is {capacity} bytes")
        self.needed = needed
        self.capacity = capacity


def encoded_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStore(ABC):
    """
    String values under string keys, bounded by capacity_bytes across all keys.

    A write that would exceed the ceiling raises QuotaExceededError and leaves
    the previous value untouched.
    """

    def __init__(self, capacity_bytes: int = DEFAULT_STORAGE_QUOTA) -> None:
        self.capacity_bytes = capacity_bytes

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def used_bytes(self) -> int:
        ...

    def _check_quota(self, key: str, value: str) -> None:
        current = self.get_item(key)
        freed = encoded_size(key, current) if current is not None else 0
        needed = self.used_bytes() - freed + encoded_size(key, value)
        if needed > self.capacity_bytes:
            raise QuotaExceededError(needed, self.capacity_bytes)


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway runs."""

    def __init__(self, capacity_bytes: int = DEFAULT_STORAGE_QUOTA, initial: dict[str, str] | None = None) -> None:
        super().__init__(capacity_bytes)
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def used_bytes(self) -> int:
        return sum(encoded_size(k, v) for k, v in self._items.items())
