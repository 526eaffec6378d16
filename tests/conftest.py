"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from venture_agent.config import Settings
from venture_agent.context import AppContext, build_context
from venture_agent.llm.base import ProviderAdapter
from venture_agent.types import GenerationRequest, GenerationResponse, TokenUsage


class FakeAdapter(ProviderAdapter):
    """Scripted provider: fixed replies, an optional error and an optional delay."""

    def __init__(
        self,
        provider_id: str,
        *,
        priority: int = 50,
        available: bool = True,
        models: tuple[str, ...] = ("fake-model",),
        reply: str = "This is a scripted answer from the fake provider.",
        error: Exception | None = None,
        delay: float = 0.0,
        kind: str = "cloud",
        rate_limit: int = 60,
    ) -> None:
        self.id = provider_id
        self.name = provider_id.title()
        self.base_priority = priority
        self.supported_models = models
        self.kind = kind
        self.requires_key = kind == "cloud"
        self.rate_limit_per_minute = rate_limit
        self.available = available
        self.reply = reply
        self.error = error
        self.delay = delay
        self.requests: list[GenerationRequest] = []
        self.probes = 0

    async def is_available(self) -> bool:
        self.probes += 1
        return self.available

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GenerationResponse(
            id=f"{self.id}-{len(self.requests)}",
            content=self.reply,
            model=request.model,
            usage=TokenUsage(40, 12, 52),
            finish_reason="stop",
            processing_time_ms=5.0,
            provider=self.id,
        )


@pytest.fixture
def make_adapter() -> Callable[..., FakeAdapter]:
    return FakeAdapter


@pytest.fixture
async def make_context():
    """Build an `AppContext` around scripted adapters; closed after the test."""
    built: list[AppContext] = []

    def _build(*adapters: FakeAdapter, seed_knowledge: bool = True) -> AppContext:
        ctx = build_context(
            Settings(seed_knowledge=seed_knowledge, log_level="WARNING"),
            adapters=list(adapters),
        )
        built.append(ctx)
        return ctx

    yield _build
    for ctx in built:
        await ctx.aclose()
