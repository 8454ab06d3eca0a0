"""Caller-facing services.

Both services route lookups through a `RequestCoordinator`, so concurrent requests for the same
ingredient or barcode share one underlying fan-out.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx

from nutrilens.config import Settings
from nutrilens.core.concurrency import RequestCoordinator
from nutrilens.logging import get_logger, lookup_context
from nutrilens.models.product import Product, ScanResult
from nutrilens.models.recommendation import ProductSafety
from nutrilens.models.research import AggregatedResearch, IngredientResearch
from nutrilens.research.pipeline import ResearchPipeline
from nutrilens.sources.open_food_facts import OpenFoodFactsClient
from nutrilens.synthesis.product_safety import summarize_product_safety
from nutrilens.synthesis.recommender import ResearchSynthesizer, fallback_recommendation

logger = get_logger(__name__)


def normalize_key(value: str) -> str:
    return " ".join(value.split()).lower()


class ResearchService:
    """Coordinated ingredient research with optional synthesis."""

    def __init__(
        self,
        pipeline: ResearchPipeline,
        synthesizer: ResearchSynthesizer,
        *,
        coordinator: RequestCoordinator[IngredientResearch] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.synthesizer = synthesizer
        self.coordinator = coordinator if coordinator is not None else RequestCoordinator("research")

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ResearchService":
        return cls(
            ResearchPipeline.from_settings(settings, transport=transport),
            ResearchSynthesizer.from_settings(settings),
        )

    async def research(self, ingredient: str, *, synthesize: bool = True) -> IngredientResearch:
        """Full research for an ingredient.

        With `synthesize` unset the remote generation step is skipped and the rule-based
        recommendation is attached instead.

        Raises:
            ValueError: If the ingredient name is blank.
        """

        name = ingredient.strip()
        if not name:
            raise ValueError("ingredient name must not be empty")
        mode = "full" if synthesize else "evidence"
        key = f"{mode}:{normalize_key(name)}"

        async def _run() -> IngredientResearch:
            with lookup_context(key=key, stage="start"):
                result = await self.pipeline.research_ingredient(name)
                if synthesize:
                    recommendation = await self.synthesizer.synthesize(name, result.aggregated)
                else:
                    recommendation = fallback_recommendation(name, result.aggregated)
                return result.model_copy(update={"recommendation": recommendation})

        return await self.coordinator.run(key, _run)

    async def quick(self, ingredient: str) -> IngredientResearch:
        """Reduced-cost research from the literature sources only."""

        name = ingredient.strip()
        if not name:
            raise ValueError("ingredient name must not be empty")
        key = f"quick:{normalize_key(name)}"

        async def _run() -> IngredientResearch:
            with lookup_context(key=key, stage="start"):
                return await self.pipeline.quick_research(name)

        return await self.coordinator.run(key, _run)


class ProductCache(Protocol):
    """Local product store keyed by barcode."""

    async def get(self, barcode: str) -> Product | None: ...

    async def put(self, product: Product) -> None: ...


class ProductService:
    """Coordinated barcode lookups: local cache first, then the product database.

    With a `ResearchService` attached, `safety_overview` also quick-researches the product's
    leading ingredients and flags the ones whose papers mention concerning terms.
    """

    def __init__(
        self,
        client: OpenFoodFactsClient,
        *,
        cache: ProductCache | None = None,
        research: ResearchService | None = None,
        coordinator: RequestCoordinator[ScanResult] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.research = research
        self.coordinator = coordinator if coordinator is not None else RequestCoordinator("products")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        cache: ProductCache | None = None,
        research: ResearchService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ProductService":
        return cls(
            OpenFoodFactsClient.from_settings(settings, transport=transport),
            cache=cache,
            research=research,
        )

    async def scan_product(self, barcode: str) -> ScanResult:
        code = barcode.strip()
        if not code:
            raise ValueError("barcode must not be empty")
        key = f"product:{code}"

        async def _run() -> ScanResult:
            with lookup_context(key=key, stage="scan"):
                return await self._lookup(code)

        return await self.coordinator.run(key, _run)

    async def _lookup(self, barcode: str) -> ScanResult:
        if self.cache is not None:
            cached = await self.cache.get(barcode)
            if cached is not None:
                return ScanResult(success=True, product=cached, source="cache")

        product = await self.client.fetch_product(barcode)
        if product is None:
            return ScanResult(success=False, error="Product not found in database", source="api")

        if self.cache is not None:
            try:
                await self.cache.put(product)
            except Exception:
                logger.warning("Failed to cache product", extra={"barcode": barcode}, exc_info=True)
        return ScanResult(success=True, product=product, source="api")

    async def safety_overview(self, barcode: str, *, max_ingredients: int = 5) -> ProductSafety | None:
        """Product-level safety overview from quick research on the leading ingredients.

        Returns None when the product cannot be found. Ingredients whose research fails are left
        out of the overview.

        Raises:
            ValueError: If the barcode is blank.
            RuntimeError: If no research service is attached.
        """

        if self.research is None:
            raise RuntimeError("product safety overview requires a research service")
        scan = await self.scan_product(barcode)
        if not scan.success or scan.product is None:
            return None
        product = scan.product

        names: list[str] = []
        seen: set[str] = set()
        for ingredient in product.ingredients:
            key = normalize_key(ingredient.text)
            if key and key not in seen:
                seen.add(key)
                names.append(ingredient.text.strip())
            if len(names) >= max_ingredients:
                break

        with lookup_context(key=f"product:{product.barcode}", stage="safety"):
            results = await asyncio.gather(
                *(self.research.quick(name) for name in names), return_exceptions=True
            )
            researched: dict[str, AggregatedResearch] = {}
            for name, result in zip(names, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    logger.warning(
                        "Ingredient research failed", extra={"ingredient": name, "error": repr(result)}
                    )
                    continue
                researched[name] = result.aggregated

            overview = summarize_product_safety(product.name, researched)
            logger.info(
                "Product safety overview",
                extra={"overall": overview.overall_safety, "flagged": len(overview.flagged_ingredients)},
            )
            return overview
