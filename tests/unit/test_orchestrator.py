import asyncio

import pytest

from venture_agent.config import OrchestratorConfig
from venture_agent.errors import ProviderRequestFailedError
from venture_agent.llm.health import ProviderHealthRegistry
from venture_agent.llm.orchestrator import FallbackOrchestrator
from venture_agent.shaping.confidence import score_fallback, score_generation
from venture_agent.types import ChatMessage

MESSAGES = [ChatMessage("system", "You are helpful."), ChatMessage("user", "Hello there")]


def _orchestrator(*adapters, timeout: float = 15.0) -> FallbackOrchestrator:
    return FallbackOrchestrator(
        ProviderHealthRegistry(list(adapters)),
        config=OrchestratorConfig(provider_timeout_seconds=timeout),
    )


async def test_failed_primary_routes_to_next_provider(make_adapter) -> None:
    down = make_adapter("a", priority=90, error=ProviderRequestFailedError("a", "HTTP 500"))
    up = make_adapter("b", priority=80)
    orchestrator = _orchestrator(down, up)

    response = await orchestrator.generate("fake-model", MESSAGES)

    assert response.provider == "b"
    assert not response.degraded
    assert score_generation(response) >= 0.5
    assert len(down.requests) == 1
    assert orchestrator.stats()["a"]["failure"] == 1
    assert orchestrator.stats()["b"]["success"] == 1


async def test_all_providers_failing_returns_deterministic_fallback(make_adapter) -> None:
    orchestrator = _orchestrator(
        make_adapter("a", priority=90, error=ProviderRequestFailedError("a", "HTTP 500")),
        make_adapter("b", priority=80, error=RuntimeError("boom")),
    )

    response = await orchestrator.generate("fake-model", MESSAGES)

    assert response.provider == "fallback"
    assert response.model == "fallback-agent"
    assert response.degraded_reason == "All providers exhausted (attempted: a, b)"
    assert response.content.startswith("Hello!")
    assert 0.3 <= score_fallback(response.fallback_confidence) <= 0.6


async def test_hung_provider_is_abandoned_at_deadline(make_adapter) -> None:
    hung = make_adapter("slow", priority=90, delay=5.0)
    quick = make_adapter("quick", priority=80)
    orchestrator = _orchestrator(hung, quick, timeout=0.05)

    response = await asyncio.wait_for(orchestrator.generate("fake-model", MESSAGES), timeout=2)

    assert response.provider == "quick"
    assert orchestrator.stats()["slow"]["timeout"] == 1


async def test_preferred_provider_goes_first_when_available(make_adapter) -> None:
    high = make_adapter("high", priority=90)
    local = make_adapter("local", priority=60, kind="local", models=("qwen2.5:latest",))
    orchestrator = _orchestrator(high, local)

    response = await orchestrator.generate("fake-model", MESSAGES, preferred_provider="local")

    assert response.provider == "local"
    assert local.requests[0].model == "qwen2.5:latest"
    assert high.requests == []


async def test_unavailable_preferred_provider_is_ignored(make_adapter) -> None:
    high = make_adapter("high", priority=90)
    local = make_adapter("local", priority=60, kind="local", available=False)
    orchestrator = _orchestrator(high, local)

    response = await orchestrator.generate("fake-model", MESSAGES, preferred_provider="local")

    assert response.provider == "high"
    assert local.requests == []


async def test_primary_is_best_provider_offering_the_model(make_adapter) -> None:
    generic = make_adapter("generic", priority=90)
    specialist = make_adapter("specialist", priority=70, models=("special-model",))
    orchestrator = _orchestrator(generic, specialist)

    response = await orchestrator.generate("special-model", MESSAGES)

    assert response.provider == "specialist"


async def test_rate_limited_provider_is_skipped(make_adapter) -> None:
    limited = make_adapter("limited", priority=90, rate_limit=1)
    spare = make_adapter("spare", priority=80)
    orchestrator = _orchestrator(limited, spare)

    first = await orchestrator.generate("fake-model", MESSAGES)
    second = await orchestrator.generate("fake-model", MESSAGES)

    assert (first.provider, second.provider) == ("limited", "spare")
    assert orchestrator.stats()["limited"]["rate_limited"] == 1


async def test_cancellation_propagates(make_adapter) -> None:
    orchestrator = _orchestrator(make_adapter("slow", delay=5.0))

    task = asyncio.create_task(orchestrator.generate("fake-model", MESSAGES))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


async def test_test_provider_reports_outcome(make_adapter) -> None:
    orchestrator = _orchestrator(
        make_adapter("ok"),
        make_adapter("off", available=False),
    )

    assert (await orchestrator.test_provider("ok"))["success"]
    assert await orchestrator.test_provider("off") == {"success": False, "error": "Provider not available"}
    assert not (await orchestrator.test_provider("missing"))["success"]
