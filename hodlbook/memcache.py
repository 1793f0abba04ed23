"""A thread-safe in-memory key/value cache."""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class Cache(Generic[K, V]):
    """A dictionary guarded by a lock, safe to share between threads."""

    def __init__(self) -> None:
        self._data: dict[K, V] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        """Return the value for ``key``, or ``None`` when it is absent."""
        with self._lock:
            return self._data.get(key)

    def __getitem__(self, key: K) -> V:
        with self._lock:
            return self._data[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def set(self, key: K, value: V) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            self._data[key] = value

    def delete(self, key: K) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[K]:
        """Return a snapshot of the keys."""
        with self._lock:
            return list(self._data)

    def values(self) -> list[V]:
        """Return a snapshot of the values."""
        with self._lock:
            return list(self._data.values())

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._data = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)