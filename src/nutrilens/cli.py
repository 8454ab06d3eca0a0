"""CLI entrypoints for NutriLens."""

from __future__ import annotations

import asyncio

import typer

from nutrilens.config import load_settings
from nutrilens.logging import configure_logging, get_logger
from nutrilens.services import ProductService, ResearchService

app = typer.Typer(add_completion=False, help="NutriLens ingredient research CLI")
logger = get_logger(__name__)


@app.command()
def research(
    ingredient: str = typer.Argument(..., help="Ingredient name, e.g. 'aspartame'."),
    quick: bool = typer.Option(False, "--quick", help="Literature sources only, no web search or synthesis."),
    synthesize: bool = typer.Option(
        True,
        "--synthesis/--no-synthesis",
        help="Ask the generation service for a recommendation (falls back to rules when unavailable).",
    ),
) -> None:
    """Research an ingredient and print the result as JSON."""

    settings = load_settings()
    configure_logging(settings.log_level)
    service = ResearchService.from_settings(settings)

    logger.info("CLI research requested", extra={"quick": quick, "synthesize": synthesize})
    try:
        if quick:
            result = asyncio.run(service.quick(ingredient))
        else:
            result = asyncio.run(service.research(ingredient, synthesize=synthesize))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    except Exception:
        logger.exception("Research failed")
        typer.echo("Failed to load research. Please try again.", err=True)
        raise typer.Exit(code=1)

    typer.echo(result.model_dump_json(indent=2))


@app.command()
def scan(barcode: str = typer.Argument(..., help="Product barcode (EAN/UPC).")) -> None:
    """Look up a product by barcode and print it as JSON."""

    settings = load_settings()
    configure_logging(settings.log_level)
    service = ProductService.from_settings(settings)

    try:
        result = asyncio.run(service.scan_product(barcode))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    typer.echo(result.model_dump_json(indent=2))
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def safety(
    barcode: str = typer.Argument(..., help="Product barcode (EAN/UPC)."),
    max_ingredients: int = typer.Option(5, "--max-ingredients", min=1, max=20, help="Leading ingredients to research."),
) -> None:
    """Quick-research a product's leading ingredients and print a safety overview as JSON."""

    settings = load_settings()
    configure_logging(settings.log_level)
    service = ProductService.from_settings(settings, research=ResearchService.from_settings(settings))

    try:
        overview = asyncio.run(service.safety_overview(barcode, max_ingredients=max_ingredients))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if overview is None:
        typer.echo("Product not found in database", err=True)
        raise typer.Exit(code=1)
    typer.echo(overview.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
