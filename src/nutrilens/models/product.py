"""Scanned product models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


class Ingredient(BaseModel):
    id: str
    text: str
    rank: int | None = None


class NutritionFacts(BaseModel):
    """Nutrition values per 100g where the source provides them."""

    energy_kcal: float | None = None
    fat: float | None = None
    saturated_fat: float | None = None
    carbohydrates: float | None = None
    sugars: float | None = None
    fiber: float | None = None
    proteins: float | None = None
    salt: float | None = None
    sodium: float | None = None


class Product(BaseModel):
    barcode: str
    name: str = "Unknown Product"
    brand: str | None = None
    image_url: str | None = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    nutrition: NutritionFacts = Field(default_factory=NutritionFacts)
    categories: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    additives: list[str] = Field(default_factory=list)
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScanResult(BaseModel):
    """Outcome of a barcode lookup."""

    success: bool
    product: Product | None = None
    error: str | None = None
    source: Literal["cache", "api"]
