"""Synthesis stage."""

from __future__ import annotations

from nutrilens.synthesis.product_safety import summarize_product_safety
from nutrilens.synthesis.recommender import (
    ResearchSynthesizer,
    build_prompt,
    fallback_recommendation,
    parse_recommendation,
)

__all__ = [
    "ResearchSynthesizer",
    "build_prompt",
    "fallback_recommendation",
    "parse_recommendation",
    "summarize_product_safety",
]
