"""Tests for barcode lookups."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fakes import FakeAdapter, article

from nutrilens.models.product import Product
from nutrilens.research.pipeline import ResearchPipeline
from nutrilens.services import ProductService, ResearchService
from nutrilens.sources.base import SourceResult
from nutrilens.sources.open_food_facts import OpenFoodFactsClient, parse_product
from nutrilens.synthesis import ResearchSynthesizer

OFF_PRODUCT = {
    "status": 1,
    "product": {
        "code": "5449000000996",
        "product_name": "Diet Cola",
        "brands": "Fizz Co",
        "ingredients_text": "Carbonated water, colour (caramel E150d); sweetener (aspartame)",
        "nutriments": {"energy-kcal_100g": 0.4, "sugars_100g": 0, "salt": 0.02},
        "categories_tags": ["en:beverages", "en:sodas"],
        "allergens_tags": [],
        "additives_tags": ["en:e150d", "en:e951"],
    },
}


class MemoryProductCache:
    def __init__(self) -> None:
        self.products: dict[str, Product] = {}

    async def get(self, barcode: str) -> Product | None:
        return self.products.get(barcode)

    async def put(self, product: Product) -> None:
        self.products[product.barcode] = product


def _client(handler) -> OpenFoodFactsClient:
    return OpenFoodFactsClient(max_retries=0, transport=httpx.MockTransport(handler))


def test_api_lookup_populates_cache() -> None:
    """It should store a fetched product and serve the next lookup from the cache."""

    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        assert request.url.path.endswith("/product/5449000000996.json")
        return httpx.Response(200, json=OFF_PRODUCT)

    cache = MemoryProductCache()
    service = ProductService(_client(handler), cache=cache)

    async def scenario():
        return await service.scan_product("5449000000996"), await service.scan_product("5449000000996")

    first, second = asyncio.run(scenario())

    assert first.success and first.source == "api"
    assert first.product is not None
    assert first.product.name == "Diet Cola"
    assert second.source == "cache"
    assert len(calls) == 1


def test_unknown_product_is_not_found() -> None:
    """It should report a product the database does not know as not found."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": 0, "status_verbose": "product not found"})

    result = asyncio.run(ProductService(_client(handler)).scan_product("000"))

    assert result.success is False
    assert result.error == "Product not found in database"


def test_http_404_is_not_found() -> None:
    """It should treat an HTTP 404 as not found."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    result = asyncio.run(ProductService(_client(handler)).scan_product("000"))

    assert result.success is False


def test_concurrent_scans_share_one_request() -> None:
    """It should send one request for concurrent scans of the same barcode."""

    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=OFF_PRODUCT)

    service = ProductService(_client(handler))

    async def scenario():
        return await asyncio.gather(service.scan_product("5449000000996"), service.scan_product("5449000000996"))

    a, b = asyncio.run(scenario())

    assert a is b
    assert len(calls) == 1


def test_parse_product_splits_text_ingredients_and_strips_tag_prefixes() -> None:
    """It should split the ingredient text and strip language prefixes from tags."""

    product = parse_product(OFF_PRODUCT["product"], "5449000000996")

    assert [i.text for i in product.ingredients] == [
        "Carbonated water",
        "colour (caramel E150d)",
        "sweetener (aspartame)",
    ]
    assert product.categories == ["beverages", "sodas"]
    assert product.additives == ["e150d", "e951"]
    assert product.nutrition.energy_kcal == 0.4
    assert product.nutrition.sugars == 0
    assert product.nutrition.salt == 0.02
    assert product.nutrition.fat is None


class KeywordLiterature:
    """Literature adapter whose results depend on which ingredient the query names."""

    name = "pubmed"

    def __init__(self, by_keyword: dict[str, list], *, failing: str | None = None) -> None:
        self.by_keyword = by_keyword
        self.failing = failing
        self.queries: list[str] = []

    async def search(self, query: str, *, max_results: int) -> SourceResult:
        self.queries.append(query)
        if self.failing and self.failing in query:
            raise RuntimeError("literature backend down")
        for keyword, items in self.by_keyword.items():
            if keyword in query:
                return SourceResult(total_count=len(items), items=items[:max_results])
        return SourceResult(total_count=0, items=[])


def _research(literature: KeywordLiterature) -> ResearchService:
    pipeline = ResearchPipeline(
        literature=literature,
        citation_graph=FakeAdapter("semantic_scholar"),
        web=FakeAdapter("exa_health"),
        regulatory=FakeAdapter("exa_regulatory"),
    )
    return ResearchService(pipeline, ResearchSynthesizer())


def _off_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/product/5449000000996.json"):
        return httpx.Response(200, json=OFF_PRODUCT)
    return httpx.Response(200, json={"status": 0})


def test_safety_overview_flags_ingredients_with_concerning_papers() -> None:
    """It should flag the ingredient whose papers mention a concerning term."""

    literature = KeywordLiterature(
        {
            "aspartame": [article("1", abstract="Adverse neurological effects were reported.")],
            "caramel": [article("2", abstract="Caramel colour is widely used.")],
        }
    )
    service = ProductService(_client(_off_handler), research=_research(literature))

    overview = asyncio.run(service.safety_overview("5449000000996"))

    assert overview is not None
    assert overview.overall_safety == "caution"
    assert [f.name for f in overview.flagged_ingredients] == ["sweetener (aspartame)"]
    assert len(literature.queries) == 3


def test_safety_overview_researches_only_leading_ingredients() -> None:
    """It should research at most `max_ingredients` ingredients, in label order."""

    literature = KeywordLiterature({"aspartame": [article("1", abstract="Potentially toxic at high doses.")]})
    service = ProductService(_client(_off_handler), research=_research(literature))

    overview = asyncio.run(service.safety_overview("5449000000996", max_ingredients=2))

    assert overview is not None
    assert overview.overall_safety == "safe"
    assert overview.summary == "Diet Cola ingredients appear safe based on available research."
    assert len(literature.queries) == 2
    assert not any("aspartame" in q for q in literature.queries)


def test_safety_overview_skips_ingredients_whose_research_fails() -> None:
    """It should leave out an ingredient whose research raised and summarize the rest."""

    literature = KeywordLiterature(
        {"caramel": [article("2", abstract="A carcinogen classification is debated.")]},
        failing="aspartame",
    )
    service = ProductService(_client(_off_handler), research=_research(literature))

    overview = asyncio.run(service.safety_overview("5449000000996"))

    assert overview is not None
    assert [f.name for f in overview.flagged_ingredients] == ["colour (caramel E150d)"]


def test_safety_overview_for_unknown_product_is_none() -> None:
    """It should return None when the barcode is not in the product database."""

    service = ProductService(_client(_off_handler), research=_research(KeywordLiterature({})))

    assert asyncio.run(service.safety_overview("000")) is None


def test_safety_overview_requires_research_service() -> None:
    """It should refuse to build an overview without a research service."""

    service = ProductService(_client(_off_handler))

    with pytest.raises(RuntimeError):
        asyncio.run(service.safety_overview("5449000000996"))
