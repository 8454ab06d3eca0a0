"""FastAPI app exposing ingredient research and product lookup."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from nutrilens.config import Settings, load_settings
from nutrilens.logging import configure_logging, get_logger
from nutrilens.models.product import ScanResult
from nutrilens.models.recommendation import ProductSafety
from nutrilens.models.research import IngredientResearch
from nutrilens.services import ProductService, ResearchService


def create_app(
    settings: Settings | None = None,
    *,
    research_service: ResearchService | None = None,
    product_service: ProductService | None = None,
) -> FastAPI:
    """Create FastAPI app.

    Services are built once here so the citation-graph cache, call spacing and in-flight
    coordination are shared by every request.
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)

    research = research_service or ResearchService.from_settings(settings)
    products = product_service or ProductService.from_settings(settings, research=research)

    app = FastAPI(title="NutriLens", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/ingredients/{name}/research")
    async def research_ingredient(
        name: str,
        quick: bool = Query(False, description="Literature sources only, no synthesis"),
        synthesize: bool = Query(True, description="Request a generated recommendation"),
    ) -> IngredientResearch:
        logger.info("API research requested", extra={"ingredient": name, "quick": quick})
        try:
            if quick:
                return await research.quick(name)
            return await research.research(name, synthesize=synthesize)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except Exception as e:
            logger.exception("Research failed")
            raise HTTPException(status_code=502, detail="research failed, please try again") from e

    @app.get("/products/{barcode}")
    async def scan_product(barcode: str) -> ScanResult:
        logger.info("API scan requested", extra={"barcode": barcode})
        try:
            result = await products.scan_product(barcode)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        if not result.success:
            raise HTTPException(status_code=404, detail=result.error or "product not found")
        return result

    @app.get("/products/{barcode}/safety")
    async def product_safety(
        barcode: str,
        max_ingredients: int = Query(5, ge=1, le=20, description="Leading ingredients to research"),
    ) -> ProductSafety:
        logger.info("API product safety requested", extra={"barcode": barcode})
        try:
            overview = await products.safety_overview(barcode, max_ingredients=max_ingredients)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        if overview is None:
            raise HTTPException(status_code=404, detail="Product not found in database")
        return overview

    return app
