"""Tests for recommendation synthesis and the product overview."""

from __future__ import annotations

import asyncio

from fakes import FakeLLM

from nutrilens.llm.client import LLMError
from nutrilens.models.research import AggregatedPaper, AggregatedResearch, AggregatedWebResult
from nutrilens.synthesis import ResearchSynthesizer, summarize_product_safety
from nutrilens.synthesis.recommender import build_prompt, fallback_recommendation, parse_recommendation


def _research(total: int = 7) -> AggregatedResearch:
    return AggregatedResearch(
        papers=[
            AggregatedPaper(title="Aspartame and cancer risk", abstract="Adverse events were reported in a cohort.", pmid="111"),
            AggregatedPaper(title="Sweetener review", tldr="Reviews sweeteners.", doi="10.1/abc", citation_count=40),
            AggregatedPaper(title="No identifiers"),
            AggregatedPaper(title="Fourth", pmid="444"),
        ],
        web_results=[AggregatedWebResult(title="FDA page", snippet="Approved.", url="https://www.fda.gov/a")],
        total_results=total,
    )


def test_without_client_returns_complete_fallback() -> None:
    """It should return a fully populated fallback when no model is configured."""

    synthesizer = ResearchSynthesizer()

    rec = asyncio.run(synthesizer.synthesize("aspartame", _research()))

    assert synthesizer.enabled is False
    assert rec.generated_by == "fallback"
    assert rec.summary == "Found 7 studies on aspartame. Review the evidence below."
    assert rec.safety_level == "insufficient_data"
    assert rec.confidence == "low"
    assert rec.key_points == ["Aspartame and cancer risk", "Sweetener review", "No identifiers"]
    assert rec.citations == ["PMID:111", "DOI:10.1/abc", "PMID:444"]
    assert rec.recommendation


def test_fallback_mentions_limited_research() -> None:
    """It should mention limited research when few papers were found."""

    rec = fallback_recommendation("stevia", _research(total=2))

    assert rec.summary == "Limited research found on stevia (2 studies)."


def test_prose_wrapped_json_is_parsed() -> None:
    """It should parse a JSON object wrapped in prose."""

    reply = (
        "Here is my analysis:\n"
        '{"summary": "Generally fine in normal amounts.", "safetyLevel": "caution", '
        '"keyPoints": ["Point A"], "concerns": ["PKU"], "benefits": [], '
        '"recommendation": "Moderate intake.", "confidence": "medium", "citations": ["PMID:999"]}\n'
        "Let me know if you need more."
    )
    llm = FakeLLM(reply)

    rec = asyncio.run(ResearchSynthesizer(llm).synthesize("aspartame", _research()))

    assert rec.generated_by == "llm"
    assert rec.summary == "Generally fine in normal amounts."
    assert rec.safety_level == "caution"
    assert rec.key_points == ["Point A"]
    assert rec.concerns == ["PKU"]
    assert rec.confidence == "medium"
    assert rec.citations == ["PMID:111", "DOI:10.1/abc", "PMID:444"]
    assert len(llm.messages) == 1
    assert llm.messages[0][0].role == "system"


def test_missing_fields_get_defaults() -> None:
    """It should fill in defaults for fields the model left out."""

    rec = parse_recommendation('{"safetyLevel": "terrible", "confidence": 3}', "aspartame", _research())

    assert rec.summary == "Unable to generate summary"
    assert rec.recommendation == "Insufficient evidence for recommendation"
    assert rec.safety_level == "insufficient_data"
    assert rec.confidence == "low"
    assert rec.key_points == []


def test_malformed_json_falls_back() -> None:
    """It should fall back when the reply is not valid JSON."""

    rec = asyncio.run(ResearchSynthesizer(FakeLLM("{not json at all")).synthesize("aspartame", _research()))

    assert rec.generated_by == "fallback"


def test_client_error_falls_back() -> None:
    """It should fall back when the model call fails."""

    llm = FakeLLM(error=LLMError("upstream unavailable"))

    rec = asyncio.run(ResearchSynthesizer(llm).synthesize("aspartame", _research()))

    assert rec.generated_by == "fallback"
    assert rec.safety_level == "insufficient_data"


def test_prompt_includes_bounded_evidence() -> None:
    """It should include a bounded number of papers in the prompt."""

    prompt = build_prompt("aspartame", _research())

    assert 'about "aspartame"' in prompt
    assert "(7 found, showing top 4)" in prompt
    assert "Source: PMID:111" in prompt
    assert "Reviews sweeteners." in prompt
    assert "Source: N/A" in prompt
    assert "- FDA page: Approved." in prompt


def test_product_safety_flags_concerning_ingredients() -> None:
    """It should flag ingredients whose papers mention concerning terms."""

    research = {
        "aspartame": _research(),
        "salt": AggregatedResearch(papers=[AggregatedPaper(title="Sodium intake and blood pressure")]),
    }

    overview = summarize_product_safety("Diet Cola", research)

    assert overview.overall_safety == "caution"
    assert [f.name for f in overview.flagged_ingredients] == ["aspartame"]
    assert overview.summary == "1 ingredient(s) may need attention. Tap for details."


def test_product_safety_without_research_is_unknown() -> None:
    """It should rate a product unknown when nothing was researched."""

    assert summarize_product_safety("Water", {}).overall_safety == "unknown"
