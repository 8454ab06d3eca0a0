"""Relevance ordering and deduplication of evidence."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from nutrilens.models.evidence import EvidenceItem
from nutrilens.models.sources import S2Paper

RECENCY_WINDOW_YEARS = 5
RECENCY_BONUS = 20.0
TLDR_BONUS = 10.0
CITATION_WEIGHT = 10.0


def relevance_score(paper: S2Paper, *, current_year: int | None = None) -> float:
    """Score a citation-graph paper: log-scaled citations plus recency and TLDR bonuses."""

    year_now = current_year if current_year is not None else date.today().year
    score = math.log(paper.citation_count + 1) * CITATION_WEIGHT
    if paper.year is not None and year_now - paper.year < RECENCY_WINDOW_YEARS:
        score += RECENCY_BONUS
    if paper.tldr:
        score += TLDR_BONUS
    return score


def sort_by_relevance(papers: Iterable[S2Paper], *, current_year: int | None = None) -> list[S2Paper]:
    """Highest score first. The sort is stable, so equal scores keep their input order."""

    year_now = current_year if current_year is not None else date.today().year
    return sorted(papers, key=lambda p: relevance_score(p, current_year=year_now), reverse=True)


def deduplicate_evidence(evidence: Iterable[EvidenceItem]) -> list[EvidenceItem]:
    """Drop items whose URL (case-insensitive) was already seen; the first occurrence wins."""

    seen: set[str] = set()
    unique: list[EvidenceItem] = []
    for item in evidence:
        key = item.url.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique
