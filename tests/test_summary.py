"""Tests for ingredient summary derivation."""

from __future__ import annotations

import itertools

from nutrilens.models.evidence import EvidenceItem
from nutrilens.research.summary import summarize_evidence

_ids = itertools.count(1)


def _item(
    summary: str,
    *,
    type_: str = "web",
    url: str | None = None,
    confidence: str = "medium",
) -> EvidenceItem:
    n = next(_ids)
    return EvidenceItem(
        id=f"item-{n}",
        type=type_,
        title="t",
        summary=summary,
        source="s",
        url=url or f"https://example.com/{n}",
        confidence=confidence,
    )


def test_avoid_outranks_safe_regardless_of_frequency() -> None:
    """It should rate avoid over safe however often each appears."""

    evidence = [
        _item("Considered safe. Safe in moderation is not claimed here, safe safe safe."),
        _item("One report called it carcinogenic."),
    ]

    assert summarize_evidence(evidence).safety_rating == "avoid"


def test_caution_outranks_safe() -> None:
    """It should rate caution over safe."""

    evidence = [_item("Approved for use."), _item("Excessive intake should be avoided.")]

    assert summarize_evidence(evidence).safety_rating == "caution"


def test_safe_keywords_depend_on_regulator_presence() -> None:
    """It should upgrade safe wording to safe only when a regulator is present."""

    plain = [_item("Generally recognized as safe by experts.")]
    with_regulator = [_item("Approved food additive.", type_="regulatory", url="https://www.fda.gov/food/additive")]

    assert summarize_evidence(plain).safety_rating == "generally_safe"
    result = summarize_evidence(with_regulator)
    assert result.safety_rating == "safe"
    assert result.regulatory_status == ["FDA"]


def test_keyword_matching_is_case_insensitive_substring() -> None:
    """It should match safety keywords case-insensitively as substrings."""

    assert summarize_evidence([_item("HARMFUL at high doses")]).safety_rating == "avoid"


def test_total_studies_counts_literature_and_citation_graph_only() -> None:
    """It should count only literature and citation-graph items as studies."""

    evidence = [
        _item("a", type_="literature"),
        _item("b", type_="citation_graph"),
        _item("c", type_="web"),
        _item("d", type_="regulatory", url="https://www.efsa.europa.eu/x"),
    ]

    summary = summarize_evidence(evidence)

    assert summary.total_studies == 2
    assert summary.regulatory_status == ["EFSA"]


def test_health_hit_on_regulator_host_is_not_regulatory_status() -> None:
    """It should only count regulator hosts found among regulatory results."""

    summary = summarize_evidence([_item("Aspartame is approved.", url="https://www.fda.gov/food/x")])

    assert summary.regulatory_status == []
    assert summary.safety_rating == "generally_safe"


def test_regulators_are_a_set_in_first_seen_order() -> None:
    """It should list each regulator once, in first-seen order."""

    evidence = [
        _item("x", type_="regulatory", url="https://www.who.int/a"),
        _item("y", type_="regulatory", url="https://www.fda.gov/a"),
        _item("z", type_="regulatory", url="https://www.who.int/b"),
    ]

    assert summarize_evidence(evidence).regulatory_status == ["WHO", "FDA"]


def test_controversy_flagged_by_keywords() -> None:
    """It should raise controversy when dispute keywords appear."""

    assert summarize_evidence([_item("Results remain conflicting across cohorts.")]).controversy_level == "medium"
    assert summarize_evidence([_item("Plain statement.")]).controversy_level == "low"


def test_key_findings_use_first_sentence_of_high_confidence_items() -> None:
    """It should take key findings from the first sentence of high-confidence items."""

    long_tail = " More detail follows to make this summary long enough."
    evidence = [
        _item("Medium confidence sentence that is long enough." + long_tail),
        *[
            _item(f"High confidence finding number {i} is here. Rest." + long_tail, confidence="high")
            for i in range(7)
        ],
        _item("Too short.", confidence="high"),
    ]

    findings = summarize_evidence(evidence).key_findings

    assert findings == [f"High confidence finding number {i} is here" for i in range(5)]


def test_empty_evidence_yields_unknown() -> None:
    """It should return an unknown rating for empty evidence."""

    summary = summarize_evidence([])

    assert summary.safety_rating == "unknown"
    assert summary.controversy_level == "none"
    assert summary.total_studies == 0
    assert summary.key_findings == []
    assert summary.regulatory_status == []
