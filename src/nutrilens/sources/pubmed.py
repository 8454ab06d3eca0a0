"""PubMed E-utilities literature adapter.

Two phases: `esearch` resolves the query to a list of PMIDs, then `efetch` retrieves the article
records for exactly that id set. An empty id list short-circuits before any detail fetch.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
from bs4 import BeautifulSoup, Tag

from nutrilens.config import Settings
from nutrilens.logging import get_logger
from nutrilens.models.sources import PubMedArticle
from nutrilens.sources.base import BaseSourceAdapter, SourceError, SourceResult
from nutrilens.sources.http import request_with_retry
from nutrilens.utils.text import collapse_whitespace

logger = get_logger(__name__)

MAX_AUTHORS = 5

_YEAR_RE = re.compile(r"\b(\d{4})\b")


class PubMedAdapter(BaseSourceAdapter[PubMedArticle]):
    """Peer-reviewed biomedical literature search."""

    name = "pubmed"

    def __init__(
        self,
        *,
        base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils",
        tool: str = "nutrilens",
        email: str | None = None,
        api_key: str | None = None,
        max_retries: int = 2,
        retry_backoff_s: float = 0.5,
        retry_max_backoff_s: float = 4.0,
        timeout_s: float = 15.0,
        user_agent: str = "NutriLens/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout_s=timeout_s, user_agent=user_agent, transport=transport)
        self.base_url = base_url.rstrip("/")
        self.tool = tool
        self.email = email
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_backoff_s = retry_backoff_s
        self.retry_max_backoff_s = retry_max_backoff_s

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "PubMedAdapter":
        return cls(
            base_url=settings.pubmed_base_url,
            tool=settings.pubmed_tool,
            email=settings.pubmed_email,
            api_key=settings.pubmed_api_key,
            max_retries=settings.source_max_retries,
            retry_backoff_s=settings.source_retry_backoff_s,
            retry_max_backoff_s=settings.source_retry_max_backoff_s,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.http_user_agent,
            transport=transport,
        )

    def _common_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"db": "pubmed", "tool": self.tool}
        if self.email:
            params["email"] = self.email
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, Any]) -> httpx.Response:
        return await request_with_retry(
            client,
            "GET",
            f"{self.base_url}/{path}",
            source=self.name,
            max_retries=self.max_retries,
            backoff_s=self.retry_backoff_s,
            max_backoff_s=self.retry_max_backoff_s,
            params=params,
        )

    async def _search(self, query: str, *, max_results: int) -> SourceResult[PubMedArticle]:
        async with self._client() as client:
            resp = await self._get(
                client,
                "esearch.fcgi",
                {
                    **self._common_params(),
                    "term": query,
                    "retmax": max_results,
                    "retmode": "json",
                    "sort": "relevance",
                },
            )
            data = resp.json()
            if not isinstance(data, dict):
                raise SourceError("pubmed esearch response not a JSON object")

            esearch = data.get("esearchresult") or {}
            pmids = [str(p) for p in esearch.get("idlist") or []]
            if not pmids:
                return SourceResult.empty()

            total_count = int(esearch.get("count") or 0)

            resp = await self._get(
                client,
                "efetch.fcgi",
                {
                    **self._common_params(),
                    "id": ",".join(pmids),
                    "retmode": "xml",
                    "rettype": "abstract",
                },
            )

        articles = parse_pubmed_articles(resp.text, pmids)
        return SourceResult(total_count=total_count, items=articles)


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return collapse_whitespace(node.get_text(" "))


def _parse_year(pub_date: Tag | None) -> tuple[str, int | None]:
    if pub_date is None:
        return "", None
    year = _text(pub_date.find("Year"))
    month = _text(pub_date.find("Month"))
    if not year:
        medline = _text(pub_date.find("MedlineDate"))
        m = _YEAR_RE.search(medline)
        return medline, int(m.group(1)) if m else None
    display = f"{month} {year}" if month else year
    return display, int(year) if year.isdigit() else None


def _parse_authors(author_list: Tag | None) -> list[str]:
    authors: list[str] = []
    for author in _children(author_list, "Author"):
        last = _text(author.find("LastName"))
        if not last:
            continue
        fore = _text(author.find("ForeName"))
        authors.append(f"{fore} {last}".strip())
        if len(authors) >= MAX_AUTHORS:
            break
    return authors


def _children(parent: Tag | None, name: str) -> list[Tag]:
    if parent is None:
        return []
    return parent.find_all(name, recursive=False)


def _child(parent: Tag | None, name: str) -> Tag | None:
    return parent.find(name, recursive=False) if parent is not None else None


def _parse_doi(node: Tag, article: Tag | None) -> str | None:
    # The article's own id list; ReferenceList entries carry the DOIs of cited papers.
    id_list = _child(_child(node, "PubmedData"), "ArticleIdList")
    for article_id in _children(id_list, "ArticleId"):
        if (article_id.get("IdType") or "").lower() == "doi":
            return _text(article_id) or None
    for location in _children(article, "ELocationID"):
        if (location.get("EIdType") or "").lower() == "doi":
            return _text(location) or None
    return None


def _parse_article(node: Tag, pmid: str) -> PubMedArticle:
    citation = _child(node, "MedlineCitation")
    article = _child(citation, "Article")
    journal = _child(article, "Journal")
    pub_date = _child(_child(journal, "JournalIssue"), "PubDate")
    pub_date_display, year = _parse_year(pub_date)

    # OtherAbstract (translations) sits outside Article and is not included.
    abstract = " ".join(t for t in (_text(a) for a in _children(_child(article, "Abstract"), "AbstractText")) if t)

    return PubMedArticle(
        pmid=pmid,
        title=_text(_child(article, "ArticleTitle")) or "Untitled",
        abstract=abstract,
        authors=_parse_authors(_child(article, "AuthorList")),
        journal=_text(_child(journal, "Title")),
        pub_date=pub_date_display,
        year=year,
        doi=_parse_doi(node, article),
        keywords=[_text(k) for k in _children(_child(citation, "KeywordList"), "Keyword") if _text(k)],
        mesh_terms=[
            _text(d)
            for heading in _children(_child(citation, "MeshHeadingList"), "MeshHeading")
            for d in _children(heading, "DescriptorName")
            if _text(d)
        ],
    )


def parse_pubmed_articles(xml: str, pmids: list[str]) -> list[PubMedArticle]:
    """Parse an efetch XML payload, returning articles in `pmids` order.

    Records whose PMID was not requested or that fail to parse are skipped.
    """

    soup = BeautifulSoup(xml, "xml")
    by_pmid: dict[str, PubMedArticle] = {}
    for node in soup.find_all("PubmedArticle"):
        pmid = _text(_child(_child(node, "MedlineCitation"), "PMID"))
        if not pmid or pmid in by_pmid:
            continue
        try:
            by_pmid[pmid] = _parse_article(node, pmid)
        except Exception:
            logger.debug("Skipping unparseable PubMed record", extra={"pmid": pmid})
            continue

    return [by_pmid[p] for p in pmids if p in by_pmid]
