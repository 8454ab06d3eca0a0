"""Research aggregator.

Fans an ingredient out to every source adapter concurrently, normalizes and merges their
records in adapter-priority order (literature, citation graph by relevance, web, regulatory),
deduplicates by URL and derives the summary. The synthesis projection is built from the raw,
pre-dedup records because they keep abstracts and TLDRs the trimmed evidence does not.
"""

from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Callable, Sequence

import httpx

from nutrilens.config import Settings
from nutrilens.logging import get_logger, set_stage
from nutrilens.models.evidence import EvidenceItem
from nutrilens.models.research import (
    AggregatedPaper,
    AggregatedResearch,
    AggregatedWebResult,
    IngredientResearch,
)
from nutrilens.models.sources import PubMedArticle, S2Paper, WebSearchResult
from nutrilens.research.normalizer import normalize_pubmed, normalize_s2, normalize_web
from nutrilens.research.queries import build_queries
from nutrilens.research.ranking import deduplicate_evidence, sort_by_relevance
from nutrilens.research.summary import summarize_evidence
from nutrilens.sources.base import SourceAdapter, SourceResult
from nutrilens.sources.pubmed import PubMedAdapter
from nutrilens.sources.semantic_scholar import SemanticScholarAdapter
from nutrilens.sources.web_search import ExaSearchAdapter
from nutrilens.synthesis.recommender import fallback_recommendation

logger = get_logger(__name__)


def _current_year() -> int:
    return date.today().year


def build_aggregated(
    articles: Sequence[PubMedArticle],
    ranked_papers: Sequence[S2Paper],
    web_results: Sequence[WebSearchResult],
    *,
    total_results: int,
) -> AggregatedResearch:
    """Project raw records into the lightweight shape the synthesis stage reads."""

    papers = [
        AggregatedPaper(
            title=a.title,
            abstract=a.abstract or None,
            pmid=a.pmid,
            doi=a.doi,
            year=a.year,
        )
        for a in articles
    ]
    papers.extend(
        AggregatedPaper(
            title=p.title,
            abstract=p.abstract,
            tldr=p.tldr,
            doi=p.external_ids.doi,
            citation_count=p.citation_count,
            year=p.year,
        )
        for p in ranked_papers
    )
    return AggregatedResearch(
        papers=papers,
        web_results=[AggregatedWebResult(title=r.title, snippet=r.snippet, url=r.url) for r in web_results],
        total_results=total_results,
    )


class ResearchPipeline:
    """Full and reduced-cost ingredient research."""

    def __init__(
        self,
        *,
        literature: SourceAdapter[PubMedArticle],
        citation_graph: SourceAdapter[S2Paper],
        web: SourceAdapter[WebSearchResult],
        regulatory: SourceAdapter[WebSearchResult],
        max_results: int = 5,
        quick_max_results: int = 3,
        health_max_results: int = 10,
        regulatory_max_results: int = 5,
        web_evidence_limit: int = 5,
        current_year: Callable[[], int] = _current_year,
    ) -> None:
        self.literature = literature
        self.citation_graph = citation_graph
        self.web = web
        self.regulatory = regulatory
        self.max_results = max_results
        self.quick_max_results = quick_max_results
        self.health_max_results = health_max_results
        self.regulatory_max_results = regulatory_max_results
        self.web_evidence_limit = web_evidence_limit
        self._current_year = current_year

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ResearchPipeline":
        """Wire the default adapters. Construct once per process: the citation-graph adapter
        owns the cache and call spacing state."""

        return cls(
            literature=PubMedAdapter.from_settings(settings, transport=transport),
            citation_graph=SemanticScholarAdapter.from_settings(settings, transport=transport),
            web=ExaSearchAdapter.from_settings(settings, purpose="health", transport=transport),
            regulatory=ExaSearchAdapter.from_settings(settings, purpose="regulatory", transport=transport),
            max_results=settings.research_max_results,
            quick_max_results=settings.quick_max_results,
            health_max_results=settings.health_max_results,
            regulatory_max_results=settings.regulatory_max_results,
            web_evidence_limit=settings.web_evidence_limit,
        )

    async def research_ingredient(self, ingredient: str) -> IngredientResearch:
        """Aggregate every source for one ingredient.

        Args:
            ingredient: Ingredient name.

        Returns:
            IngredientResearch without a recommendation; see `ResearchSynthesizer`.
        """

        started = time.monotonic()
        queries = build_queries(ingredient)

        set_stage("fan_out")
        pubmed, s2, health, regulatory = await asyncio.gather(
            self.literature.search(queries.literature, max_results=self.max_results),
            self.citation_graph.search(queries.citation_graph, max_results=self.max_results),
            self.web.search(queries.web, max_results=self.health_max_results),
            self.regulatory.search(queries.regulatory, max_results=self.regulatory_max_results),
        )

        set_stage("aggregate")
        ranked = sort_by_relevance(s2.items, current_year=self._current_year())
        web_hits = health.items[: self.web_evidence_limit]

        evidence: list[EvidenceItem] = [normalize_pubmed(a) for a in pubmed.items]
        evidence.extend(normalize_s2(p) for p in ranked)
        evidence.extend(normalize_web(r, "web") for r in web_hits)
        evidence.extend(normalize_web(r, "regulatory") for r in regulatory.items)

        unique = deduplicate_evidence(evidence)
        summary = summarize_evidence(unique)
        aggregated = build_aggregated(
            pubmed.items,
            ranked,
            [*web_hits, *regulatory.items],
            total_results=pubmed.total_count + s2.total_count,
        )

        logger.info(
            "Ingredient research aggregated",
            extra={
                "ingredient": ingredient,
                "evidence_count": len(unique),
                "duplicates_dropped": len(evidence) - len(unique),
                "counts": {
                    "literature": len(pubmed.items),
                    "citation_graph": len(s2.items),
                    "web": len(web_hits),
                    "regulatory": len(regulatory.items),
                },
                "safety_rating": summary.safety_rating,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )

        return IngredientResearch(
            ingredient=ingredient,
            evidence=unique,
            summary=summary,
            aggregated=aggregated,
        )

    async def quick_research(self, ingredient: str) -> IngredientResearch:
        """Fast signal from the two literature-style sources only.

        Web and regulatory search and remote synthesis are skipped; the recommendation is the
        rule-based one.
        """

        queries = build_queries(ingredient)

        set_stage("quick_fan_out")
        pubmed: SourceResult[PubMedArticle]
        s2: SourceResult[S2Paper]
        pubmed, s2 = await asyncio.gather(
            self.literature.search(queries.literature, max_results=self.quick_max_results),
            self.citation_graph.search(queries.citation_graph, max_results=self.quick_max_results),
        )

        set_stage("aggregate")
        ranked = sort_by_relevance(s2.items, current_year=self._current_year())
        evidence = deduplicate_evidence(
            [*(normalize_pubmed(a) for a in pubmed.items), *(normalize_s2(p) for p in ranked)]
        )
        aggregated = build_aggregated(pubmed.items, ranked, [], total_results=pubmed.total_count + s2.total_count)

        return IngredientResearch(
            ingredient=ingredient,
            evidence=evidence,
            summary=summarize_evidence(evidence),
            aggregated=aggregated,
            recommendation=fallback_recommendation(ingredient, aggregated),
        )
