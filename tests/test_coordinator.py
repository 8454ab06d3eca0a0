"""Tests for single-flight request coordination."""

from __future__ import annotations

import asyncio

import pytest
from fakes import FakeAdapter, article

from nutrilens.core.concurrency import MinIntervalThrottle, RequestCoordinator
from nutrilens.research.pipeline import ResearchPipeline
from nutrilens.services import ResearchService
from nutrilens.synthesis import ResearchSynthesizer


def _service(literature: FakeAdapter) -> ResearchService:
    pipeline = ResearchPipeline(
        literature=literature,
        citation_graph=FakeAdapter("semantic_scholar"),
        web=FakeAdapter("exa_health"),
        regulatory=FakeAdapter("exa_regulatory"),
    )
    return ResearchService(pipeline, ResearchSynthesizer())


def test_concurrent_lookups_share_one_aggregation() -> None:
    """It should run one aggregation for concurrent lookups of the same ingredient."""

    literature = FakeAdapter("pubmed", [article("1")], delay_s=0.01)
    service = _service(literature)

    async def scenario():
        return await asyncio.gather(service.research("Aspartame"), service.research("  aspartame "))

    first, second = asyncio.run(scenario())

    assert first is second
    assert len(literature.calls) == 1
    assert service.coordinator.inflight_count == 0


def test_sequential_lookups_start_fresh() -> None:
    """It should start a new aggregation once the previous one has finished."""

    literature = FakeAdapter("pubmed", [article("1")])
    service = _service(literature)

    async def scenario():
        a = await service.research("aspartame")
        b = await service.research("aspartame")
        return a, b

    a, b = asyncio.run(scenario())

    assert a is not b
    assert len(literature.calls) == 2


def test_modes_do_not_share_flights() -> None:
    """It should keep full and quick lookups of the same ingredient apart."""

    literature = FakeAdapter("pubmed", [article("1")], delay_s=0.01)
    service = _service(literature)

    async def scenario():
        return await asyncio.gather(service.research("aspartame"), service.quick("aspartame"))

    full, quick = asyncio.run(scenario())

    assert full is not quick
    assert len(literature.calls) == 2


def test_research_without_synthesis_still_carries_a_recommendation() -> None:
    """It should attach the rule-based recommendation when synthesis is skipped."""

    service = _service(FakeAdapter("pubmed", [article("1")]))

    result = asyncio.run(service.research("aspartame", synthesize=False))

    assert result.recommendation is not None
    assert result.recommendation.generated_by == "fallback"
    assert result.recommendation.citations == ["PMID:1"]


def test_blank_ingredient_is_rejected() -> None:
    """It should reject a blank ingredient name."""

    service = _service(FakeAdapter("pubmed"))

    with pytest.raises(ValueError):
        asyncio.run(service.research("   "))


def test_failure_is_shared_and_key_released() -> None:
    """It should hand a failure to every waiter and then release the key."""

    coordinator: RequestCoordinator[int] = RequestCoordinator("test")
    attempts: list[int] = []

    async def failing() -> int:
        attempts.append(1)
        await asyncio.sleep(0.01)
        raise RuntimeError("boom")

    async def ok() -> int:
        return 7

    async def scenario():
        results = await asyncio.gather(
            coordinator.run("k", failing), coordinator.run("k", failing), return_exceptions=True
        )
        assert not coordinator.is_inflight("k")
        return results, await coordinator.run("k", ok)

    results, later = asyncio.run(scenario())

    assert len(attempts) == 1
    assert all(isinstance(r, RuntimeError) for r in results)
    assert later == 7


def test_cancelled_waiter_does_not_cancel_shared_work() -> None:
    """It should keep the shared run going when one waiter is cancelled."""

    coordinator: RequestCoordinator[str] = RequestCoordinator("test")

    async def slow() -> str:
        await asyncio.sleep(0.02)
        return "done"

    async def scenario():
        impatient = asyncio.create_task(coordinator.run("k", slow))
        patient = asyncio.create_task(coordinator.run("k", slow))
        await asyncio.sleep(0)
        impatient.cancel()
        return await patient

    assert asyncio.run(scenario()) == "done"


def test_throttle_serializes_bursts() -> None:
    """It should space out calls made in a burst."""

    now = [0.0]
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        now[0] += seconds

    throttle = MinIntervalThrottle(1.0, clock=lambda: now[0], sleep=fake_sleep)

    async def scenario():
        return await asyncio.gather(throttle.wait(), throttle.wait(), throttle.wait())

    waited = asyncio.run(scenario())

    assert waited == [0.0, 1.0, 1.0]
    assert sleeps == [1.0, 1.0]
    assert throttle.last_call == 2.0
