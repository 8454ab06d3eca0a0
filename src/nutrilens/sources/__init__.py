"""Source adapters."""

from __future__ import annotations

from nutrilens.sources.base import BaseSourceAdapter, SourceAdapter, SourceError, SourceResult
from nutrilens.sources.open_food_facts import OpenFoodFactsClient
from nutrilens.sources.pubmed import PubMedAdapter
from nutrilens.sources.semantic_scholar import SemanticScholarAdapter
from nutrilens.sources.web_search import ExaSearchAdapter

__all__ = [
    "BaseSourceAdapter",
    "ExaSearchAdapter",
    "OpenFoodFactsClient",
    "PubMedAdapter",
    "SemanticScholarAdapter",
    "SourceAdapter",
    "SourceError",
    "SourceResult",
]
