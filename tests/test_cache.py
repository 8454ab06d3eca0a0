"""Tests for the TTL cache."""

from __future__ import annotations

from nutrilens.core.cache import TTLCache


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    """It should stop returning an entry once its TTL has passed."""

    clock = Clock()
    cache: TTLCache[str] = TTLCache(10, clock=clock)
    cache.put("a", "x")

    clock.now = 9.9
    assert cache.get("a") == "x"
    clock.now = 10.0
    assert cache.get("a") is None
    assert len(cache) == 0


def test_oldest_entry_is_evicted_at_capacity() -> None:
    """It should evict the oldest insertion when the cache is full."""

    cache: TTLCache[int] = TTLCache(60, max_entries=2, clock=Clock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_cleanup_expired_counts_removed_entries() -> None:
    """It should drop expired entries and report how many it removed."""

    clock = Clock()
    cache: TTLCache[int] = TTLCache(5, clock=clock)
    cache.put("a", 1)
    clock.now = 3
    cache.put("b", 2)
    clock.now = 6

    assert cache.cleanup_expired() == 1
    assert cache.get("b") == 2
