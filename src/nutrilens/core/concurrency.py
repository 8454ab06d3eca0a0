"""Concurrency control utilities for async operations."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Generic, TypeVar

from nutrilens.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RequestCoordinator(Generic[T]):
    """Share one in-flight operation among concurrent callers of the same key.

    The first caller for a key starts the operation as a task; callers arriving while it is
    still pending await that same task and receive the identical result (or exception). The
    entry is dropped as soon as the operation settles, so a later call starts fresh.
    """

    def __init__(self, name: str = "requests") -> None:
        self.name = name
        self._inflight: dict[str, asyncio.Task[T]] = {}

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run `operation` for `key`, or join the one already running.

        Args:
            key: Lookup identifier (ingredient name, barcode).
            operation: Zero-argument coroutine factory performing the real work.

        Returns:
            The operation's result.
        """

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._settle(key, operation))
            self._inflight[key] = task
            logger.debug("Coordinator started", extra={"coordinator": self.name, "key": key})
        else:
            logger.debug("Coordinator joined in-flight", extra={"coordinator": self.name, "key": key})

        # A caller that gives up must not cancel work other callers are waiting on.
        return await asyncio.shield(task)

    async def _settle(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        finally:
            self._inflight.pop(key, None)

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    @property
    def inflight_count(self) -> int:
        """Number of operations currently running."""
        return len(self._inflight)


class MinIntervalThrottle:
    """Enforce a minimum spacing between consecutive calls.

    Bursts are serialized: each caller waits its turn instead of being rejected.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize throttle.

        Args:
            min_interval_s: Minimum seconds between two permitted calls.
            clock: Monotonic time source.
            sleep: Async sleep function.
        """
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """Wait until a call is permitted.

        Returns:
            Seconds spent waiting.
        """
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self.min_interval_s - (self._clock() - self._last_call)
                if remaining > 0:
                    await self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()
            return waited

    @property
    def last_call(self) -> float | None:
        return self._last_call
