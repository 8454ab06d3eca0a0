"""Source adapter contract.

Every adapter turns a plain-text query into a `SourceResult`. `SourceResult` has no error arm:
`BaseSourceAdapter.search` absorbs any transport or parse failure and reports it as an empty
contribution, so one failing source never aborts an aggregation.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

import httpx

from nutrilens.logging import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")
RecordT_co = TypeVar("RecordT_co", covariant=True)


class SourceError(RuntimeError):
    """Adapter-internal failure. Never escapes `BaseSourceAdapter.search`."""


@dataclass(frozen=True)
class SourceResult(Generic[RecordT]):
    """Outcome of one adapter search: a total hit count and the fetched records."""

    total_count: int = 0
    items: list[RecordT] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "SourceResult[RecordT]":
        return cls(total_count=0, items=[])


class SourceAdapter(Protocol[RecordT_co]):
    """Search capability the research pipeline depends on."""

    name: str

    async def search(self, query: str, *, max_results: int) -> SourceResult[RecordT_co]:
        """Search the source. Must resolve to an empty result rather than raise."""


class BaseSourceAdapter(ABC, Generic[RecordT]):
    """Common plumbing for HTTP-backed adapters."""

    name: str = "source"

    def __init__(
        self,
        *,
        timeout_s: float = 15.0,
        user_agent: str = "NutriLens/0.1",
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            timeout_s: Per-request timeout in seconds.
            user_agent: User-Agent header sent to the source.
            headers: Extra headers merged over the defaults.
            transport: Optional httpx transport (tests inject `httpx.MockTransport`).
        """
        self.timeout_s = timeout_s
        self.default_headers = {"User-Agent": user_agent}
        if headers:
            self.default_headers.update(headers)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_s),
            headers=self.default_headers,
            follow_redirects=True,
            transport=self._transport,
        )

    async def search(self, query: str, *, max_results: int) -> SourceResult[RecordT]:
        """Search the source, absorbing any failure into an empty result.

        Args:
            query: Free-text query.
            max_results: Maximum number of records to return.

        Returns:
            SourceResult; `SourceResult.empty()` on any failure.
        """

        started = time.monotonic()
        try:
            result = await self._search(query, max_results=max_results)
        except Exception as e:
            logger.warning(
                "Source search failed; contributing no evidence",
                extra={
                    "source": self.name,
                    "query_len": len(query),
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "elapsed_ms": int((time.monotonic() - started) * 1000),
                },
            )
            return SourceResult.empty()

        logger.info(
            "Source search ok",
            extra={
                "source": self.name,
                "query_len": len(query),
                "max_results": max_results,
                "total_count": result.total_count,
                "result_count": len(result.items),
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return result

    @abstractmethod
    async def _search(self, query: str, *, max_results: int) -> SourceResult[RecordT]:
        """Source-specific search. May raise; `search` absorbs it."""
