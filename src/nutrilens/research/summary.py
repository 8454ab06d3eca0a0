"""Derive an `IngredientSummary` from deduplicated evidence.

Matching is plain substring search over the lower-cased, space-joined evidence summaries with
fixed keyword lists. There is no stemming or synonym handling.
"""

from __future__ import annotations

from typing import Sequence

from nutrilens.models.evidence import EvidenceItem
from nutrilens.models.research import ControversyLevel, IngredientSummary, SafetyRating
from nutrilens.utils.text import first_sentence, host_matches, url_host

MAX_KEY_FINDINGS = 5
MIN_FINDING_SOURCE_CHARS = 50
MIN_FINDING_CHARS = 20

# Checked in this order; the first bucket with any hit decides the rating.
AVOID_KEYWORDS: tuple[str, ...] = ("toxic", "harmful", "banned", "dangerous", "carcinogenic")
CAUTION_KEYWORDS: tuple[str, ...] = ("caution", "limit", "moderate", "excessive")
SAFE_KEYWORDS: tuple[str, ...] = ("safe", "approved", "generally recognized", "gras")

CONTROVERSY_KEYWORDS: tuple[str, ...] = ("controversial", "debate", "conflicting", "disputed", "mixed results")

# (host suffix, regulator id)
REGULATOR_DOMAINS: tuple[tuple[str, str], ...] = (
    ("fda.gov", "FDA"),
    ("efsa.europa.eu", "EFSA"),
    ("who.int", "WHO"),
    ("ec.europa.eu", "EC"),
    ("food.gov.uk", "FSA"),
)


def merged_text(evidence: Sequence[EvidenceItem]) -> str:
    return " ".join(e.summary.lower() for e in evidence)


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


def regulatory_bodies(evidence: Sequence[EvidenceItem]) -> list[str]:
    """Regulator ids whose hosts appear among regulatory evidence URLs, in first-seen order.

    Health-web hits are ignored even when hosted on a regulator domain.
    """

    found: list[str] = []
    for item in evidence:
        if item.type != "regulatory":
            continue
        host = url_host(item.url)
        for domain, regulator in REGULATOR_DOMAINS:
            if host_matches(host, domain) and regulator not in found:
                found.append(regulator)
    return found


def safety_rating(text: str, *, has_regulator: bool) -> SafetyRating:
    if _contains_any(text, AVOID_KEYWORDS):
        return "avoid"
    if _contains_any(text, CAUTION_KEYWORDS):
        return "caution"
    if _contains_any(text, SAFE_KEYWORDS):
        return "safe" if has_regulator else "generally_safe"
    return "unknown"


def controversy_level(evidence: Sequence[EvidenceItem], text: str) -> ControversyLevel:
    if not evidence:
        return "none"
    return "medium" if _contains_any(text, CONTROVERSY_KEYWORDS) else "low"


def key_findings(evidence: Sequence[EvidenceItem]) -> list[str]:
    """First sentences of substantial high-confidence summaries, in evidence order."""

    findings: list[str] = []
    for item in evidence:
        if len(findings) >= MAX_KEY_FINDINGS:
            break
        if item.confidence != "high" or len(item.summary) <= MIN_FINDING_SOURCE_CHARS:
            continue
        sentence = first_sentence(item.summary)
        if len(sentence) > MIN_FINDING_CHARS:
            findings.append(sentence)
    return findings


def summarize_evidence(evidence: Sequence[EvidenceItem]) -> IngredientSummary:
    """Build the summary for a deduplicated evidence set."""

    text = merged_text(evidence)
    regulators = regulatory_bodies(evidence)
    return IngredientSummary(
        safety_rating=safety_rating(text, has_regulator=bool(regulators)),
        controversy_level=controversy_level(evidence, text),
        regulatory_status=regulators,
        key_findings=key_findings(evidence),
        total_studies=sum(1 for e in evidence if e.is_study),
    )
