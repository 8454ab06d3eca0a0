"""Synthesis output models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


RecommendationSafety = Literal["safe", "generally_safe", "caution", "avoid", "unknown", "insufficient_data"]
RecommendationConfidence = Literal["high", "medium", "low"]


class AIRecommendation(BaseModel):
    """Structured verdict for one ingredient.

    Produced either by the remote generation step or by the local rule-based fallback; every
    field is always populated.
    """

    summary: str
    safety_level: RecommendationSafety = "insufficient_data"
    key_points: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    recommendation: str
    citations: list[str] = Field(default_factory=list)
    confidence: RecommendationConfidence = "low"
    generated_by: Literal["llm", "fallback"] = "fallback"


class FlaggedIngredient(BaseModel):
    name: str
    concern: str


class ProductSafety(BaseModel):
    """Product-level overview across several researched ingredients."""

    overall_safety: Literal["safe", "caution", "avoid", "unknown"]
    summary: str
    flagged_ingredients: list[FlaggedIngredient] = Field(default_factory=list)
