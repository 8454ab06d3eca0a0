"""Map each adapter's records into the canonical `EvidenceItem`."""

from __future__ import annotations

from typing import Literal

from nutrilens.models.evidence import Confidence, EvidenceItem
from nutrilens.models.sources import PubMedArticle, S2Paper, WebSearchResult
from nutrilens.utils.ids import format_evidence_id, hash_url
from nutrilens.utils.text import display_host, host_matches, truncate, url_host

SUMMARY_MAX_CHARS = 500
MAX_AUTHORS = 5
MAX_TAGS = 8
NO_SUMMARY = "No summary available"

PUBMED_ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"

OFFICIAL_DOMAINS: tuple[str, ...] = ("who.int", "efsa.europa.eu")

HIGH_CITATIONS = 100
MEDIUM_CITATIONS = 10


def is_official_host(host: str) -> bool:
    """Government hosts (any `gov` label, e.g. fda.gov, food.gov.uk) and named health bodies."""

    if not host:
        return False
    if "gov" in host.split("."):
        return True
    return any(host_matches(host, d) for d in OFFICIAL_DOMAINS)


def citation_confidence(citations: int) -> Confidence:
    if citations > HIGH_CITATIONS:
        return "high"
    if citations > MEDIUM_CITATIONS:
        return "medium"
    return "low"


def _cap_tags(*groups: list[str]) -> list[str]:
    tags: list[str] = []
    for group in groups:
        for tag in group:
            if tag and tag not in tags:
                tags.append(tag)
    return tags[:MAX_TAGS]


def normalize_pubmed(article: PubMedArticle) -> EvidenceItem:
    """Literature is peer reviewed by construction, so confidence is always high."""

    return EvidenceItem(
        id=format_evidence_id("pubmed", article.pmid),
        type="literature",
        title=article.title,
        summary=truncate(article.abstract, SUMMARY_MAX_CHARS),
        source=article.journal or "PubMed",
        url=PUBMED_ARTICLE_URL.format(pmid=article.pmid),
        year=article.year,
        authors=article.authors[:MAX_AUTHORS],
        confidence="high",
        tags=_cap_tags(article.mesh_terms[:5], article.keywords[:3]),
    )


def normalize_s2(paper: S2Paper) -> EvidenceItem:
    summary = paper.tldr or paper.abstract or NO_SUMMARY
    return EvidenceItem(
        id=format_evidence_id("s2", paper.paper_id),
        type="citation_graph",
        title=paper.title,
        summary=truncate(summary, SUMMARY_MAX_CHARS),
        source=paper.venue or "Semantic Scholar",
        url=paper.url,
        year=paper.year,
        citations=paper.citation_count,
        authors=[a.name for a in paper.authors[:MAX_AUTHORS]],
        confidence=citation_confidence(paper.citation_count),
        tags=_cap_tags(paper.fields_of_study),
    )


def normalize_web(result: WebSearchResult, kind: Literal["web", "regulatory"] = "web") -> EvidenceItem:
    host = url_host(result.url)
    return EvidenceItem(
        id=format_evidence_id(kind, hash_url(result.url)),
        type=kind,
        title=result.title or display_host(result.url) or result.url,
        summary=truncate(result.snippet, SUMMARY_MAX_CHARS),
        source=display_host(result.url) or result.url,
        url=result.url,
        confidence="high" if is_official_host(host) else "medium",
        tags=["regulatory", "official"] if kind == "regulatory" else ["web"],
    )
