"""Evidence models.

`EvidenceItem` is the canonical unit every source adapter's records are normalized into.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


EvidenceType = Literal["literature", "citation_graph", "web", "regulatory"]
Confidence = Literal["high", "medium", "low"]

STUDY_TYPES: frozenset[str] = frozenset({"literature", "citation_graph"})


class EvidenceItem(BaseModel):
    """A normalized document contributing to an ingredient's research picture."""

    id: str
    type: EvidenceType
    title: str
    summary: str
    source: str
    url: str = Field(min_length=1)
    year: int | None = None
    citations: int | None = Field(default=None, ge=0)
    authors: list[str] = Field(default_factory=list)
    confidence: Confidence
    tags: list[str] = Field(default_factory=list)

    @property
    def is_study(self) -> bool:
        """Whether this item counts towards the study total."""

        return self.type in STUDY_TYPES
