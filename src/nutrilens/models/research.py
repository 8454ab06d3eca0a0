"""Research result models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from nutrilens.models.evidence import EvidenceItem
from nutrilens.models.recommendation import AIRecommendation


SafetyRating = Literal["safe", "generally_safe", "caution", "avoid", "unknown"]
ControversyLevel = Literal["none", "low", "medium", "high"]


class IngredientSummary(BaseModel):
    """Signals derived from a deduplicated evidence set."""

    safety_rating: SafetyRating = "unknown"
    controversy_level: ControversyLevel = "none"
    regulatory_status: list[str] = Field(default_factory=list)
    key_findings: list[str] = Field(default_factory=list, max_length=5)
    total_studies: int = Field(default=0, ge=0)


class AggregatedPaper(BaseModel):
    """Lightweight paper record handed to synthesis."""

    title: str
    abstract: str | None = None
    tldr: str | None = None
    pmid: str | None = None
    doi: str | None = None
    citation_count: int | None = None
    year: int | None = None

    @property
    def citation_id(self) -> str | None:
        """Traceable identifier, PubMed id preferred over DOI."""

        if self.pmid:
            return f"PMID:{self.pmid}"
        if self.doi:
            return f"DOI:{self.doi}"
        return None


class AggregatedWebResult(BaseModel):
    title: str
    snippet: str
    url: str


class AggregatedResearch(BaseModel):
    """Synthesis-ready projection of raw literature and web records.

    `total_results` sums the totals reported by the two literature-style sources only.
    """

    papers: list[AggregatedPaper] = Field(default_factory=list)
    web_results: list[AggregatedWebResult] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0)


class IngredientResearch(BaseModel):
    """Everything gathered for one ingredient lookup."""

    ingredient: str
    evidence: list[EvidenceItem] = Field(default_factory=list)
    summary: IngredientSummary = Field(default_factory=IngredientSummary)
    aggregated: AggregatedResearch = Field(default_factory=AggregatedResearch)
    recommendation: AIRecommendation | None = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
