"""Research aggregation pipeline."""

from __future__ import annotations

from nutrilens.research.pipeline import ResearchPipeline, build_aggregated
from nutrilens.research.queries import SourceQueries, build_queries
from nutrilens.research.ranking import deduplicate_evidence, relevance_score, sort_by_relevance
from nutrilens.research.summary import summarize_evidence

__all__ = [
    "ResearchPipeline",
    "SourceQueries",
    "build_aggregated",
    "build_queries",
    "deduplicate_evidence",
    "relevance_score",
    "sort_by_relevance",
    "summarize_evidence",
]
