"""Source-specific query strings derived from an ingredient name."""

from __future__ import annotations

from dataclasses import dataclass

PUBMED_QUALIFIERS = (
    "(health[Title/Abstract] OR safety[Title/Abstract] OR toxicity[Title/Abstract] "
    'OR nutrition[Title/Abstract] OR "adverse effects"[Title/Abstract])'
)
CITATION_GRAPH_QUALIFIERS = "(health OR safety OR nutrition OR toxicology OR dietary)"
HEALTH_WEB_SUFFIX = "health effects safety research scientific"
REGULATORY_SUFFIX = "FDA EFSA regulation approved safe limit"


@dataclass(frozen=True)
class SourceQueries:
    """One query per adapter family."""

    literature: str
    citation_graph: str
    web: str
    regulatory: str


def build_literature_query(ingredient: str) -> str:
    return f'"{ingredient}"[Title/Abstract] AND {PUBMED_QUALIFIERS}'


def build_citation_graph_query(ingredient: str) -> str:
    return f"{ingredient} {CITATION_GRAPH_QUALIFIERS}"


def build_web_query(ingredient: str) -> str:
    return f"{ingredient} {HEALTH_WEB_SUFFIX}"


def build_regulatory_query(ingredient: str) -> str:
    return f"{ingredient} {REGULATORY_SUFFIX}"


def build_queries(ingredient: str) -> SourceQueries:
    """Build every adapter query for an ingredient.

    Args:
        ingredient: Ingredient name as shown to the user.

    Returns:
        SourceQueries.
    """

    name = ingredient.strip()
    return SourceQueries(
        literature=build_literature_query(name),
        citation_graph=build_citation_graph_query(name),
        web=build_web_query(name),
        regulatory=build_regulatory_query(name),
    )
