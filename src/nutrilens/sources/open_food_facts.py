"""Open Food Facts product lookup by barcode."""

from __future__ import annotations

import re
from typing import Any

import httpx

from nutrilens.config import Settings
from nutrilens.logging import get_logger
from nutrilens.models.product import Ingredient, NutritionFacts, Product
from nutrilens.sources.base import SourceError
from nutrilens.sources.http import request_with_retry

logger = get_logger(__name__)

_LANG_PREFIX_RE = re.compile(r"^[a-z]{2}:")
_INGREDIENT_SPLIT_RE = re.compile(r"[,;]")

# field -> (per-100g key, fallback key)
_NUTRIMENT_KEYS: dict[str, tuple[str, str]] = {
    "energy_kcal": ("energy-kcal_100g", "energy-kcal"),
    "fat": ("fat_100g", "fat"),
    "saturated_fat": ("saturated-fat_100g", "saturated-fat"),
    "carbohydrates": ("carbohydrates_100g", "carbohydrates"),
    "sugars": ("sugars_100g", "sugars"),
    "fiber": ("fiber_100g", "fiber"),
    "proteins": ("proteins_100g", "proteins"),
    "salt": ("salt_100g", "salt"),
    "sodium": ("sodium_100g", "sodium"),
}


class OpenFoodFactsClient:
    """Fetch product records from the Open Food Facts v0 API."""

    name = "open_food_facts"

    def __init__(
        self,
        *,
        base_url: str = "https://world.openfoodfacts.org/api/v0",
        timeout_s: float = 10.0,
        user_agent: str = "NutriLens/0.1",
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.max_retries = max_retries
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "OpenFoodFactsClient":
        return cls(
            base_url=settings.open_food_facts_base_url,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.http_user_agent,
            max_retries=settings.source_max_retries,
            transport=transport,
        )

    async def fetch_product(self, barcode: str) -> Product | None:
        """Look up a product.

        Returns:
            The product, or None when it is unknown or the lookup failed.
        """

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await request_with_retry(
                    client,
                    "GET",
                    f"{self.base_url}/product/{barcode}.json",
                    source=self.name,
                    max_retries=self.max_retries,
                )
            data = resp.json()
        except SourceError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                logger.info("Product not found (404)", extra={"barcode": barcode})
            else:
                logger.warning("Open Food Facts lookup failed", extra={"barcode": barcode, "error": str(e)})
            return None
        except Exception as e:
            logger.warning(
                "Open Food Facts lookup failed",
                extra={"barcode": barcode, "error_type": type(e).__name__, "error": str(e)},
            )
            return None

        if not isinstance(data, dict) or data.get("status") != 1 or not isinstance(data.get("product"), dict):
            logger.info("Product not found in Open Food Facts", extra={"barcode": barcode})
            return None

        return parse_product(data["product"], barcode)


def _clean_tags(tags: Any) -> list[str]:
    return [_LANG_PREFIX_RE.sub("", t) for t in tags or [] if isinstance(t, str)]


def _parse_ingredients(p: dict[str, Any]) -> list[Ingredient]:
    structured = p.get("ingredients")
    if isinstance(structured, list) and structured:
        return [
            Ingredient(id=ing.get("id") or f"ing-{idx}", text=ing.get("text") or "", rank=ing.get("rank"))
            for idx, ing in enumerate(structured)
            if isinstance(ing, dict)
        ]

    text = p.get("ingredients_text")
    if not text:
        return []
    parts = [part.strip() for part in _INGREDIENT_SPLIT_RE.split(text)]
    return [Ingredient(id=f"ing-{idx}", text=part) for idx, part in enumerate(parts) if part]


def _parse_nutrition(nutriments: dict[str, Any]) -> NutritionFacts:
    values: dict[str, float | None] = {}
    for field_name, (per_100g, fallback) in _NUTRIMENT_KEYS.items():
        value = nutriments.get(per_100g)
        if value is None:
            value = nutriments.get(fallback)
        values[field_name] = value if isinstance(value, (int, float)) else None
    return NutritionFacts(**values)


def parse_product(p: dict[str, Any], barcode: str) -> Product:
    """Map an Open Food Facts product object to `Product`."""

    return Product(
        barcode=p.get("code") or barcode,
        name=p.get("product_name") or "Unknown Product",
        brand=p.get("brands") or None,
        image_url=p.get("image_url") or p.get("image_front_url") or None,
        ingredients=_parse_ingredients(p),
        nutrition=_parse_nutrition(p.get("nutriments") or {}),
        categories=_clean_tags(p.get("categories_tags")),
        allergens=_clean_tags(p.get("allergens_tags")),
        additives=_clean_tags(p.get("additives_tags")),
    )
