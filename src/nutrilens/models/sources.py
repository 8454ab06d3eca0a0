"""Source-native records returned by the search adapters.

These keep the richer raw fields (abstracts, TLDRs, external ids) that the synthesis stage
reads; the trimmed `EvidenceItem` is derived from them by the normalizer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PubMedArticle(BaseModel):
    """A PubMed article parsed from an efetch record."""

    pmid: str
    title: str = "Untitled"
    abstract: str = ""
    authors: list[str] = Field(default_factory=list)
    journal: str = ""
    pub_date: str = ""
    year: int | None = None
    doi: str | None = None
    keywords: list[str] = Field(default_factory=list)
    mesh_terms: list[str] = Field(default_factory=list)


class S2Author(BaseModel):
    name: str


class S2ExternalIds(BaseModel):
    """External identifiers attached to a Semantic Scholar paper."""

    doi: str | None = None
    pubmed: str | None = None
    arxiv: str | None = None


class S2Paper(BaseModel):
    """A Semantic Scholar paper search hit."""

    paper_id: str
    title: str = "Untitled"
    abstract: str | None = None
    tldr: str | None = None
    authors: list[S2Author] = Field(default_factory=list)
    year: int | None = None
    citation_count: int = Field(default=0, ge=0)
    influential_citation_count: int = Field(default=0, ge=0)
    venue: str | None = None
    url: str
    open_access_pdf: str | None = None
    fields_of_study: list[str] = Field(default_factory=list)
    publication_types: list[str] = Field(default_factory=list)
    external_ids: S2ExternalIds = Field(default_factory=S2ExternalIds)


class WebSearchResult(BaseModel):
    """A single neural web search hit."""

    title: str = ""
    url: str
    snippet: str = ""
    published_date: str | None = None
    author: str | None = None
    score: float | None = None
    highlights: list[str] = Field(default_factory=list)
