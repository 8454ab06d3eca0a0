"""Rule-based product overview across several researched ingredients."""

from __future__ import annotations

from typing import Mapping

from nutrilens.models.recommendation import FlaggedIngredient, ProductSafety
from nutrilens.models.research import AggregatedResearch

CONCERNING_TERMS: tuple[str, ...] = ("toxic", "harmful", "carcinogen", "adverse", "danger")
FLAG_MESSAGE = "Some studies suggest potential concerns - tap to learn more"


def _mentions_concern(research: AggregatedResearch) -> bool:
    for paper in research.papers:
        text = f"{paper.title} {paper.abstract or ''}".lower()
        if any(term in text for term in CONCERNING_TERMS):
            return True
    return False


def summarize_product_safety(
    product_name: str,
    ingredient_research: Mapping[str, AggregatedResearch],
) -> ProductSafety:
    """Flag ingredients whose papers mention concerning terms.

    Args:
        product_name: Display name of the product.
        ingredient_research: Aggregated research per ingredient name.

    Returns:
        ProductSafety; `unknown` when nothing was researched.
    """

    if not ingredient_research:
        return ProductSafety(
            overall_safety="unknown",
            summary=f"No ingredient research available for {product_name}.",
        )

    flagged = [
        FlaggedIngredient(name=name, concern=FLAG_MESSAGE)
        for name, research in ingredient_research.items()
        if _mentions_concern(research)
    ]

    if not flagged:
        return ProductSafety(
            overall_safety="safe",
            summary=f"{product_name} ingredients appear safe based on available research.",
        )

    return ProductSafety(
        overall_safety="caution",
        summary=f"{len(flagged)} ingredient(s) may need attention. Tap for details.",
        flagged_ingredients=flagged,
    )
