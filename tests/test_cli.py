"""Tests for the command-line interface."""

from __future__ import annotations

import json

import httpx
import pytest
from fakes import FakeAdapter, article
from typer.testing import CliRunner

from nutrilens import cli
from nutrilens.research.pipeline import ResearchPipeline
from nutrilens.services import ProductService, ResearchService
from nutrilens.sources.open_food_facts import OpenFoodFactsClient
from nutrilens.synthesis import ResearchSynthesizer

runner = CliRunner()


class FailingPipeline(ResearchPipeline):
    async def quick_research(self, ingredient: str):
        raise RuntimeError("network down")


def _install(monkeypatch: pytest.MonkeyPatch, pipeline_cls=ResearchPipeline) -> None:
    pipeline = pipeline_cls(
        literature=FakeAdapter("pubmed", [article("111")]),
        citation_graph=FakeAdapter("semantic_scholar"),
        web=FakeAdapter("exa_health"),
        regulatory=FakeAdapter("exa_regulatory"),
    )
    service = ResearchService(pipeline, ResearchSynthesizer())
    monkeypatch.setattr(cli.ResearchService, "from_settings", classmethod(lambda cls, settings: service))


def test_quick_research_prints_json(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should print quick research as JSON on stdout."""

    monkeypatch.setenv("NUTRILENS_LOG_LEVEL", "ERROR")
    _install(monkeypatch)

    result = runner.invoke(cli.app, ["research", "aspartame", "--quick"])

    assert result.exit_code == 0
    body = json.loads(result.stdout)
    assert body["ingredient"] == "aspartame"
    assert body["evidence"][0]["id"] == "pubmed-111"


def test_failure_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should exit with status 1 when research fails."""

    _install(monkeypatch, FailingPipeline)

    result = runner.invoke(cli.app, ["research", "aspartame", "--quick"])

    assert result.exit_code == 1


def test_safety_prints_overview(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should print a product safety overview built from ingredient research."""

    monkeypatch.setenv("NUTRILENS_LOG_LEVEL", "ERROR")
    _install(monkeypatch)

    def handler(request: httpx.Request) -> httpx.Response:
        product = {"product_name": "Sweet Tea", "ingredients_text": "Tea, aspartame"}
        return httpx.Response(200, json={"status": 1, "product": product})

    client = OpenFoodFactsClient(max_retries=0, transport=httpx.MockTransport(handler))
    monkeypatch.setattr(
        cli.ProductService,
        "from_settings",
        classmethod(lambda cls, settings, research=None: ProductService(client, research=research)),
    )

    result = runner.invoke(cli.app, ["safety", "456", "--max-ingredients", "1"])

    assert result.exit_code == 0
    body = json.loads(result.stdout)
    assert body["overall_safety"] == "safe"
