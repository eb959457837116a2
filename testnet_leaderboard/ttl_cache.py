"""Bounded in-memory key/value store with per-entry expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class _CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """Key/value cache where every entry carries its own time-to-live.

    Expired entries are never returned. Each ``set`` sweeps expired entries
    and then evicts the oldest insertions until at most ``max_entries``
    remain. ``get`` and ``set`` hold the same lock, so readers never observe
    a half-applied write.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, _CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def set(self, key: str, value: T, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(value, self._clock() + ttl_seconds)
            self._cleanup()

    def get(self, key: str) -> T | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _cleanup(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        overflow = len(self._entries) - self._max_entries
        if overflow > 0:
            # dicts preserve insertion order, so the first keys are the oldest
            for key in list(self._entries)[:overflow]:
                del self._entries[key]
