"""Synthesis stage: turn aggregated research into an `AIRecommendation`.

The remote generation step is optional. Without a configured client, or when the call or the
parsing of its output fails, a deterministic rule-based recommendation is returned instead, so
callers always receive a complete recommendation.
"""

from __future__ import annotations

from typing import Any, Mapping

from nutrilens.config import Settings
from nutrilens.llm.client import ChatCompleter, ChatMessage, LLMClient
from nutrilens.logging import get_logger, set_stage
from nutrilens.models.recommendation import AIRecommendation
from nutrilens.models.research import AggregatedPaper, AggregatedResearch
from nutrilens.prompts import SYNTHESIS_SYSTEM_PROMPT, SYNTHESIS_USER_TEMPLATE
from nutrilens.utils.extraction import extract_json_object

logger = get_logger(__name__)

MAX_PROMPT_PAPERS = 10
MAX_PROMPT_WEB_RESULTS = 5
ABSTRACT_EXCERPT_CHARS = 200
MAX_CITATIONS = 10
FALLBACK_CITATIONS = 5
FALLBACK_KEY_POINTS = 3
ENOUGH_STUDIES = 5

SAFETY_LEVELS = frozenset({"safe", "generally_safe", "caution", "avoid", "unknown", "insufficient_data"})
CONFIDENCE_LEVELS = frozenset({"high", "medium", "low"})

DEFAULT_SUMMARY = "Unable to generate summary"
DEFAULT_RECOMMENDATION = "Insufficient evidence for recommendation"
FALLBACK_RECOMMENDATION = (
    "Review the scientific papers below and consult a healthcare professional for personalized advice."
)


def _paper_excerpt(paper: AggregatedPaper) -> str:
    if paper.tldr:
        return paper.tldr
    if paper.abstract:
        return paper.abstract[:ABSTRACT_EXCERPT_CHARS] + "..."
    return "No abstract"


def build_prompt(ingredient: str, research: AggregatedResearch) -> str:
    """Render the user prompt with a bounded excerpt of the evidence."""

    papers = research.papers[:MAX_PROMPT_PAPERS]
    paper_lines = "\n\n".join(
        f'{i}. "{p.title}" ({p.citation_count or 0} citations)\n'
        f"   {_paper_excerpt(p)}\n"
        f"   Source: {p.citation_id or 'N/A'}"
        for i, p in enumerate(papers, start=1)
    )
    web_lines = "\n".join(f"- {w.title}: {w.snippet}" for w in research.web_results[:MAX_PROMPT_WEB_RESULTS])

    return SYNTHESIS_USER_TEMPLATE.format(
        ingredient=ingredient,
        total_results=research.total_results,
        shown=len(papers),
        papers=paper_lines or "None available",
        web_findings=web_lines or "None available",
    )


def research_citations(research: AggregatedResearch, limit: int = MAX_CITATIONS) -> list[str]:
    """Identifiers of fetched papers, so every citation traces back to a real record."""

    return [cid for cid in (p.citation_id for p in research.papers[:limit]) if cid]


def fallback_recommendation(ingredient: str, research: AggregatedResearch) -> AIRecommendation:
    """Rule-based recommendation derived from study count and paper titles alone."""

    total = research.total_results
    if total >= ENOUGH_STUDIES:
        summary = f"Found {total} studies on {ingredient}. Review the evidence below."
    else:
        summary = f"Limited research found on {ingredient} ({total} studies)."

    return AIRecommendation(
        summary=summary,
        safety_level="insufficient_data",
        key_points=[p.title for p in research.papers[:FALLBACK_KEY_POINTS]],
        concerns=[],
        benefits=[],
        recommendation=FALLBACK_RECOMMENDATION,
        citations=research_citations(research, FALLBACK_CITATIONS),
        confidence="low",
        generated_by="fallback",
    )


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _str_field(value: Any, default: str) -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def _list_field(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _enum_field(value: Any, allowed: frozenset[str], default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def parse_recommendation(text: str, ingredient: str, research: AggregatedResearch) -> AIRecommendation:
    """Parse generator output, filling missing fields with safe defaults.

    Falls back to `fallback_recommendation` when no JSON object can be extracted.
    """

    data = extract_json_object(text)
    if data is None:
        logger.warning("Synthesis output had no parseable JSON object; using fallback")
        return fallback_recommendation(ingredient, research)

    return AIRecommendation(
        summary=_str_field(data.get("summary"), DEFAULT_SUMMARY),
        safety_level=_enum_field(_pick(data, "safetyLevel", "safety_level"), SAFETY_LEVELS, "insufficient_data"),
        key_points=_list_field(_pick(data, "keyPoints", "key_points")),
        concerns=_list_field(data.get("concerns")),
        benefits=_list_field(data.get("benefits")),
        recommendation=_str_field(data.get("recommendation"), DEFAULT_RECOMMENDATION),
        citations=research_citations(research),
        confidence=_enum_field(data.get("confidence"), CONFIDENCE_LEVELS, "low"),
        generated_by="llm",
    )


class ResearchSynthesizer:
    """Produce recommendations, remotely when possible and locally otherwise."""

    def __init__(
        self,
        llm: ChatCompleter | None = None,
        *,
        temperature: float = 0.2,
        max_tokens: int = 1024,
    ) -> None:
        self._llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResearchSynthesizer":
        llm = LLMClient(settings) if settings.openai_api_key else None
        return cls(llm, temperature=settings.synthesis_temperature, max_tokens=settings.synthesis_max_tokens)

    @property
    def enabled(self) -> bool:
        return self._llm is not None

    async def synthesize(self, ingredient: str, research: AggregatedResearch) -> AIRecommendation:
        """Synthesize a recommendation. Never raises for generation failures."""

        set_stage("synthesis")
        if self._llm is None:
            logger.warning("No generation credential configured; using fallback recommendation")
            return fallback_recommendation(ingredient, research)

        messages = [
            ChatMessage(role="system", content=SYNTHESIS_SYSTEM_PROMPT),
            ChatMessage(role="user", content=build_prompt(ingredient, research)),
        ]
        try:
            raw = await self._llm.complete(messages, temperature=self.temperature, max_tokens=self.max_tokens)
        except Exception as e:
            logger.warning(
                "Synthesis call failed; using fallback recommendation",
                extra={"error_type": type(e).__name__, "error": str(e)},
            )
            return fallback_recommendation(ingredient, research)

        return parse_recommendation(raw, ingredient, research)
