"""Exa neural web search adapter.

One adapter class serves two purposes, each restricted to its own allow-listed domains:
general health content and regulatory information.
"""

from __future__ import annotations

from typing import Any, Literal

import httpx

from nutrilens.config import Settings
from nutrilens.logging import get_logger
from nutrilens.models.sources import WebSearchResult
from nutrilens.sources.base import BaseSourceAdapter, SourceError, SourceResult
from nutrilens.sources.http import request_with_retry

logger = get_logger(__name__)

SearchPurpose = Literal["health", "regulatory"]

HEALTH_DOMAINS: tuple[str, ...] = (
    "nih.gov",
    "ncbi.nlm.nih.gov",
    "pubmed.gov",
    "sciencedirect.com",
    "nature.com",
    "who.int",
    "fda.gov",
    "efsa.europa.eu",
    "healthline.com",
    "mayoclinic.org",
    "webmd.com",
    "examine.com",
)

REGULATORY_DOMAINS: tuple[str, ...] = (
    "fda.gov",
    "efsa.europa.eu",
    "who.int",
    "ec.europa.eu",
    "gov.uk",
)

DOMAINS_BY_PURPOSE: dict[str, tuple[str, ...]] = {
    "health": HEALTH_DOMAINS,
    "regulatory": REGULATORY_DOMAINS,
}

TEXT_MAX_CHARACTERS = 1000
HIGHLIGHT_SENTENCES = 3


class ExaSearchAdapter(BaseSourceAdapter[WebSearchResult]):
    """Neural search restricted to a purpose-specific domain allow-list.

    Without an API key the adapter returns an empty result without touching the network.
    """

    def __init__(
        self,
        *,
        purpose: SearchPurpose,
        api_key: str | None,
        base_url: str = "https://api.exa.ai",
        include_domains: tuple[str, ...] | None = None,
        use_autoprompt: bool = True,
        max_retries: int = 2,
        retry_backoff_s: float = 0.5,
        retry_max_backoff_s: float = 4.0,
        timeout_s: float = 15.0,
        user_agent: str = "NutriLens/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout_s=timeout_s, user_agent=user_agent, transport=transport)
        self.purpose = purpose
        self.name = f"exa_{purpose}"
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.include_domains = include_domains if include_domains is not None else DOMAINS_BY_PURPOSE[purpose]
        self.use_autoprompt = use_autoprompt
        self.max_retries = max_retries
        self.retry_backoff_s = retry_backoff_s
        self.retry_max_backoff_s = retry_max_backoff_s

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        purpose: SearchPurpose,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ExaSearchAdapter":
        return cls(
            purpose=purpose,
            api_key=settings.exa_api_key,
            base_url=settings.exa_base_url,
            max_retries=settings.source_max_retries,
            retry_backoff_s=settings.source_retry_backoff_s,
            retry_max_backoff_s=settings.source_retry_max_backoff_s,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.http_user_agent,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _payload(self, query: str, max_results: int) -> dict[str, Any]:
        return {
            "query": query,
            "numResults": max_results,
            "type": "neural",
            "includeDomains": list(self.include_domains),
            "useAutoprompt": self.use_autoprompt,
            "contents": {
                "text": {"maxCharacters": TEXT_MAX_CHARACTERS},
                "highlights": {"numSentences": HIGHLIGHT_SENTENCES},
            },
        }

    async def _search(self, query: str, *, max_results: int) -> SourceResult[WebSearchResult]:
        if not self.configured:
            logger.warning("Exa API key not configured; skipping web search", extra={"source": self.name})
            return SourceResult.empty()

        async with self._client() as client:
            resp = await request_with_retry(
                client,
                "POST",
                f"{self.base_url}/search",
                source=self.name,
                max_retries=self.max_retries,
                backoff_s=self.retry_backoff_s,
                max_backoff_s=self.retry_max_backoff_s,
                json=self._payload(query, max_results),
                headers={"x-api-key": self.api_key or "", "Content-Type": "application/json"},
            )

        data = resp.json()
        if not isinstance(data, dict):
            raise SourceError("exa response not a JSON object")
        raw_results = data.get("results")
        if not isinstance(raw_results, list):
            raise SourceError("exa response missing results list")

        results = [parse_result(r) for r in raw_results if isinstance(r, dict) and r.get("url")]
        return SourceResult(total_count=len(results), items=results)


def parse_result(raw: dict[str, Any]) -> WebSearchResult:
    """Map one Exa result to `WebSearchResult`; snippet is the text or the joined highlights."""

    highlights = [h for h in raw.get("highlights") or [] if isinstance(h, str)]
    return WebSearchResult(
        title=raw.get("title") or "",
        url=raw["url"],
        snippet=raw.get("text") or " ".join(highlights),
        published_date=raw.get("publishedDate"),
        author=raw.get("author"),
        score=raw.get("score"),
        highlights=highlights,
    )
