"""Provider selection with an ordered fallback chain."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from time import perf_counter
from typing import Any

from venture_agent.config import OrchestratorConfig
from venture_agent.errors import AgentError, AllProvidersExhaustedError
from venture_agent.llm.base import estimate_tokens
from venture_agent.llm.fallback import FallbackReply, generate_fallback
from venture_agent.llm.health import FALLBACK_MODEL, FALLBACK_PROVIDER_ID, ProviderHealthRegistry
from venture_agent.types import (
    ChatMessage,
    GenerationRequest,
    GenerationResponse,
    ProviderDescriptor,
    TokenUsage,
)

logger = logging.getLogger(__name__)

_TEST_PROMPT = "Hello, this is a test message. Please respond with 'Test successful'."


class FallbackOrchestrator:
    """Routes a generation through the healthiest provider.

    The primary is the preferred provider when it is available, otherwise the
    highest-priority available provider that offers the requested model. On
    failure every remaining available provider is tried once, in descending
    priority, each under a hard deadline. When the chain is exhausted the
    deterministic fallback generator answers, so `generate` never raises for
    provider failures.
    """

    def __init__(
        self,
        registry: ProviderHealthRegistry,
        *,
        config: OrchestratorConfig | None = None,
        fallback: Callable[[Sequence[ChatMessage]], FallbackReply] = generate_fallback,
    ) -> None:
        self.registry = registry
        self.config = config or OrchestratorConfig()
        self._fallback = fallback
        self._stats: defaultdict[str, Counter[str]] = defaultdict(Counter)

    async def generate(
        self,
        model: str,
        messages: Sequence[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        top_p: float | None = None,
        preferred_provider: str | None = None,
    ) -> GenerationResponse:
        request = GenerationRequest(
            model=model,
            messages=list(messages),
            temperature=self.config.temperature if temperature is None else temperature,
            max_tokens=self.config.max_tokens if max_tokens is None else max_tokens,
            top_p=self.config.top_p if top_p is None else top_p,
        )
        try:
            return await self._run_chain(request, preferred_provider)
        except AllProvidersExhaustedError as exc:
            logger.warning("%s; answering from deterministic fallback", exc)
            return self._fallback_response(request, reason=str(exc))

    def stats(self) -> dict[str, dict[str, int]]:
        return {provider_id: dict(counter) for provider_id, counter in self._stats.items()}

    async def providers(self, force_refresh: bool = False) -> list[ProviderDescriptor]:
        return await self.registry.snapshot(force_refresh=force_refresh)

    async def test_provider(self, provider_id: str) -> dict[str, Any]:
        """Probe one provider and run a tiny generation against it."""
        try:
            adapter = self.registry.adapter(provider_id)
        except KeyError as exc:
            return {"success": False, "error": str(exc)}

        start = perf_counter()
        try:
            available = await asyncio.wait_for(
                adapter.is_available(), timeout=self.config.probe_timeout_seconds
            )
            if not available:
                return {"success": False, "error": "Provider not available"}
            await asyncio.wait_for(
                adapter.generate(
                    GenerationRequest(
                        model=adapter.default_model,
                        messages=[ChatMessage(role="user", content=_TEST_PROMPT)],
                        max_tokens=50,
                    )
                ),
                timeout=self.config.provider_timeout_seconds,
            )
        except asyncio.TimeoutError:
            return {"success": False, "error": "timed out"}
        except Exception as exc:
            return {"success": False, "error": str(exc)}
        return {"success": True, "latency_ms": (perf_counter() - start) * 1000.0}

    async def _run_chain(
        self, request: GenerationRequest, preferred_provider: str | None
    ) -> GenerationResponse:
        snapshot = [
            item for item in await self.registry.snapshot() if item.kind != "fallback"
        ]
        primary = self._select_primary(snapshot, request.model, preferred_provider)

        chain = [primary] if primary is not None else []
        chain.extend(item for item in snapshot if item.available and item is not primary)

        attempted: list[str] = []
        for descriptor in chain:
            if not self.registry.try_acquire(descriptor.id):
                logger.warning("Skipping %s: rate limit reached", descriptor.id)
                self._stats[descriptor.id]["rate_limited"] += 1
                continue
            attempted.append(descriptor.id)
            response = await self._attempt(descriptor, request)
            if response is not None:
                return response

        raise AllProvidersExhaustedError(attempted)

    def _select_primary(
        self,
        snapshot: list[ProviderDescriptor],
        model: str,
        preferred_provider: str | None,
    ) -> ProviderDescriptor | None:
        if preferred_provider:
            for item in snapshot:
                if item.id == preferred_provider and item.available:
                    return item
            logger.info(
                "Preferred provider %s is not available; using normal selection",
                preferred_provider,
            )
        for item in snapshot:
            if item.available and model in item.supported_models:
                return item
        return None

    async def _attempt(
        self, descriptor: ProviderDescriptor, request: GenerationRequest
    ) -> GenerationResponse | None:
        model = request.model
        if model not in descriptor.supported_models and descriptor.default_model:
            model = descriptor.default_model
        attempt = GenerationRequest(
            model=model,
            messages=request.messages,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            top_p=request.top_p,
        )
        adapter = self.registry.adapter(descriptor.id)
        logger.info("Attempting provider=%s model=%s", descriptor.id, model)
        try:
            response = await asyncio.wait_for(
                adapter.generate(attempt), timeout=self.config.provider_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Provider %s timed out after %.1fs",
                descriptor.id,
                self.config.provider_timeout_seconds,
            )
            self._stats[descriptor.id]["timeout"] += 1
            return None
        except AgentError as exc:
            logger.warning("Provider %s failed: %s", descriptor.id, exc)
            self._stats[descriptor.id]["failure"] += 1
            return None
        except Exception:
            logger.exception("Provider %s raised unexpectedly", descriptor.id)
            self._stats[descriptor.id]["failure"] += 1
            return None

        self._stats[descriptor.id]["success"] += 1
        if not response.provider:
            response.provider = descriptor.id
        logger.info(
            "Provider %s answered in %.0fms (%s tokens)",
            descriptor.id,
            response.processing_time_ms,
            response.usage.total_tokens,
        )
        return response

    def _fallback_response(self, request: GenerationRequest, *, reason: str) -> GenerationResponse:
        start = perf_counter()
        reply = self._fallback(request.messages)
        self._stats[FALLBACK_PROVIDER_ID]["success"] += 1
        prompt_tokens = sum(estimate_tokens(message.content) for message in request.messages)
        completion_tokens = estimate_tokens(reply.content)
        return GenerationResponse(
            id=f"fallback_{uuid.uuid4().hex[:12]}",
            content=reply.content,
            model=FALLBACK_MODEL,
            usage=TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            finish_reason="stop",
            processing_time_ms=(perf_counter() - start) * 1000.0,
            provider=FALLBACK_PROVIDER_ID,
            degraded_reason=reason,
            fallback_confidence=reply.confidence,
        )
