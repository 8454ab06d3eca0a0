"""Pydantic models used across the project."""

from __future__ import annotations

from nutrilens.models.evidence import EvidenceItem
from nutrilens.models.product import Ingredient, NutritionFacts, Product, ScanResult
from nutrilens.models.recommendation import AIRecommendation, FlaggedIngredient, ProductSafety
from nutrilens.models.research import (
    AggregatedPaper,
    AggregatedResearch,
    AggregatedWebResult,
    IngredientResearch,
    IngredientSummary,
)
from nutrilens.models.sources import PubMedArticle, S2Paper, WebSearchResult

__all__ = [
    "AIRecommendation",
    "AggregatedPaper",
    "AggregatedResearch",
    "AggregatedWebResult",
    "EvidenceItem",
    "FlaggedIngredient",
    "Ingredient",
    "IngredientResearch",
    "IngredientSummary",
    "NutritionFacts",
    "Product",
    "ProductSafety",
    "PubMedArticle",
    "S2Paper",
    "ScanResult",
    "WebSearchResult",
]
