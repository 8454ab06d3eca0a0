"""In-memory TTL cache for source responses."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Expiring key/value store with an optional size bound.

    When `max_entries` is reached the oldest insertion is evicted. Expired entries are dropped
    lazily on read and by `cleanup_expired`.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        *,
        max_entries: int | None = 512,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[V, float]] = OrderedDict()

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def put(self, key: str, value: V) -> None:
        self._entries.pop(key, None)
        if self.max_entries is not None:
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
        self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def cleanup_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""

        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
