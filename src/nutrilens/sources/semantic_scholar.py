"""Semantic Scholar citation-graph adapter.

The public API has a fair-use limit, so each adapter instance keeps a short-lived result cache
keyed by `query:limit` and spaces its outbound calls by a minimum interval. Concurrent searches for
the same key share one outbound request.
"""

from __future__ import annotations

from typing import Any

import httpx

from nutrilens.config import Settings
from nutrilens.core.cache import TTLCache
from nutrilens.core.concurrency import MinIntervalThrottle, RequestCoordinator
from nutrilens.logging import get_logger
from nutrilens.models.sources import S2Author, S2ExternalIds, S2Paper
from nutrilens.sources.base import BaseSourceAdapter, SourceError, SourceResult
from nutrilens.sources.http import request_with_retry

logger = get_logger(__name__)

PAPER_URL_TEMPLATE = "https://www.semanticscholar.org/paper/{paper_id}"

FIELDS = ",".join(
    [
        "paperId",
        "title",
        "abstract",
        "tldr",
        "authors",
        "year",
        "citationCount",
        "influentialCitationCount",
        "venue",
        "url",
        "openAccessPdf",
        "fieldsOfStudy",
        "publicationTypes",
        "externalIds",
    ]
)


class SemanticScholarAdapter(BaseSourceAdapter[S2Paper]):
    """Citation-graph search with caching and call spacing."""

    name = "semantic_scholar"

    def __init__(
        self,
        *,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        api_key: str | None = None,
        cache: TTLCache[SourceResult[S2Paper]] | None = None,
        throttle: MinIntervalThrottle | None = None,
        cache_ttl_s: float = 300.0,
        min_interval_s: float = 1.0,
        max_retries: int = 2,
        retry_backoff_s: float = 0.5,
        retry_max_backoff_s: float = 4.0,
        timeout_s: float = 15.0,
        user_agent: str = "NutriLens/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"x-api-key": api_key} if api_key else None
        super().__init__(timeout_s=timeout_s, user_agent=user_agent, headers=headers, transport=transport)
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else TTLCache(cache_ttl_s)
        self.throttle = throttle if throttle is not None else MinIntervalThrottle(min_interval_s)
        self._inflight: RequestCoordinator[SourceResult[S2Paper]] = RequestCoordinator(self.name)
        self.max_retries = max_retries
        self.retry_backoff_s = retry_backoff_s
        self.retry_max_backoff_s = retry_max_backoff_s

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "SemanticScholarAdapter":
        return cls(
            base_url=settings.semantic_scholar_base_url,
            api_key=settings.semantic_scholar_api_key,
            cache_ttl_s=settings.semantic_scholar_cache_ttl_s,
            min_interval_s=settings.semantic_scholar_min_interval_s,
            max_retries=settings.source_max_retries,
            retry_backoff_s=settings.source_retry_backoff_s,
            retry_max_backoff_s=settings.source_retry_max_backoff_s,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.http_user_agent,
            transport=transport,
        )

    async def _search(self, query: str, *, max_results: int) -> SourceResult[S2Paper]:
        cache_key = f"{query}:{max_results}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Semantic Scholar cache hit", extra={"query_len": len(query)})
            return cached

        return await self._inflight.run(cache_key, lambda: self._fetch(query, max_results, cache_key))

    async def _fetch(self, query: str, max_results: int, cache_key: str) -> SourceResult[S2Paper]:
        await self.throttle.wait()
        # A caller that finished while this one waited may already have stored the result.
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        async with self._client() as client:
            resp = await request_with_retry(
                client,
                "GET",
                f"{self.base_url}/paper/search",
                source=self.name,
                max_retries=self.max_retries,
                backoff_s=self.retry_backoff_s,
                max_backoff_s=self.retry_max_backoff_s,
                params={"query": query, "limit": max_results, "fields": FIELDS},
            )

        data = resp.json()
        if not isinstance(data, dict):
            raise SourceError("semantic scholar response not a JSON object")

        papers: list[S2Paper] = []
        for raw in data.get("data") or []:
            if not isinstance(raw, dict) or not raw.get("paperId"):
                continue
            papers.append(parse_paper(raw))

        result = SourceResult(total_count=int(data.get("total") or len(papers)), items=papers)
        self.cache.cleanup_expired()
        self.cache.put(cache_key, result)
        return result


def _nested_text(value: Any, key: str) -> str | None:
    if isinstance(value, dict):
        inner = value.get(key)
        return inner if isinstance(inner, str) and inner else None
    return None


def parse_paper(raw: dict[str, Any]) -> S2Paper:
    """Map one Semantic Scholar search record to `S2Paper`."""

    paper_id = str(raw["paperId"])
    external = raw.get("externalIds") or {}
    return S2Paper(
        paper_id=paper_id,
        title=raw.get("title") or "Untitled",
        abstract=raw.get("abstract") or None,
        tldr=_nested_text(raw.get("tldr"), "text"),
        authors=[S2Author(name=a["name"]) for a in raw.get("authors") or [] if isinstance(a, dict) and a.get("name")],
        year=raw.get("year") or None,
        citation_count=raw.get("citationCount") or 0,
        influential_citation_count=raw.get("influentialCitationCount") or 0,
        venue=raw.get("venue") or None,
        url=raw.get("url") or PAPER_URL_TEMPLATE.format(paper_id=paper_id),
        open_access_pdf=_nested_text(raw.get("openAccessPdf"), "url"),
        fields_of_study=raw.get("fieldsOfStudy") or [],
        publication_types=raw.get("publicationTypes") or [],
        external_ids=S2ExternalIds(
            doi=external.get("DOI"),
            pubmed=external.get("PubMed"),
            arxiv=external.get("ArXiv"),
        ),
    )
