"""Provider health probing, caching and rate limiting."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from time import perf_counter

from venture_agent.llm.base import ProviderAdapter
from venture_agent.llm.rate_limit import SlidingWindowRateLimiter
from venture_agent.types import ProviderDescriptor

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER_ID = "fallback"
FALLBACK_MODEL = "fallback-agent"
FALLBACK_PRIORITY = 10
MISSING_KEY_PENALTY = 50
FAILED_PROBE_PENALTY = 30


class ProviderHealthRegistry:
    """Probes adapters concurrently and serves a priority-sorted snapshot.

    Providers are demoted rather than removed: a cloud provider without a
    credential loses 50 priority points and is reported unavailable, a local
    backend whose health check fails loses 30. A synthetic `fallback`
    descriptor is always present, always available, at priority 10.
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        *,
        cache_ttl_seconds: float = 300.0,
        probe_timeout_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}
        for adapter in adapters:
            if adapter.id in self._adapters or adapter.id == FALLBACK_PROVIDER_ID:
                raise ValueError(f"Provider already registered: {adapter.id}")
            self._adapters[adapter.id] = adapter
        self.cache_ttl_seconds = cache_ttl_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self._clock = clock
        self._cached: list[ProviderDescriptor] | None = None
        self._refreshed_at = 0.0
        self._lock = asyncio.Lock()
        self._limiters = {
            adapter.id: SlidingWindowRateLimiter(adapter.rate_limit_per_minute, clock=clock)
            for adapter in self._adapters.values()
        }

    def adapter(self, provider_id: str) -> ProviderAdapter:
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            raise KeyError(f"Unknown provider: {provider_id}")
        return adapter

    def adapters(self) -> list[ProviderAdapter]:
        return list(self._adapters.values())

    async def snapshot(self, force_refresh: bool = False) -> list[ProviderDescriptor]:
        if not force_refresh and self._is_fresh():
            return list(self._cached or [])

        async with self._lock:
            # Another task may have refreshed while we waited on the lock.
            if not force_refresh and self._is_fresh():
                return list(self._cached or [])
            descriptors = await asyncio.gather(
                *(self._probe(adapter) for adapter in self._adapters.values())
            )
            descriptors.append(_fallback_descriptor())
            descriptors.sort(key=lambda item: item.priority, reverse=True)
            self._cached = descriptors
            self._refreshed_at = self._clock()

        available = [item.id for item in descriptors if item.available]
        logger.info("Provider health refreshed; available: %s", ", ".join(available))
        return list(descriptors)

    def invalidate(self) -> None:
        self._cached = None

    def try_acquire(self, provider_id: str) -> bool:
        """Consume one request slot; False when the provider is rate limited."""
        limiter = self._limiters.get(provider_id)
        if limiter is None:
            return True
        return limiter.try_acquire()

    def _is_fresh(self) -> bool:
        if self._cached is None:
            return False
        return (self._clock() - self._refreshed_at) < self.cache_ttl_seconds

    async def _probe(self, adapter: ProviderAdapter) -> ProviderDescriptor:
        start = perf_counter()
        error: str | None = None
        try:
            available = await asyncio.wait_for(
                adapter.is_available(), timeout=self.probe_timeout_seconds
            )
        except asyncio.TimeoutError:
            available, error = False, "health probe timed out"
        except Exception as exc:
            available, error = False, f"health probe failed: {exc!r}"
        latency_ms = (perf_counter() - start) * 1000.0

        priority = adapter.base_priority
        if not available:
            if adapter.kind == "cloud" and adapter.requires_key:
                priority -= MISSING_KEY_PENALTY
                error = error or "API key not configured"
            else:
                priority -= FAILED_PROBE_PENALTY
                error = error or "health check failed"
            logger.debug("Provider %s unavailable: %s", adapter.id, error)

        return ProviderDescriptor(
            id=adapter.id,
            name=adapter.name,
            requires_key=adapter.requires_key,
            supported_models=list(adapter.supported_models),
            priority=priority,
            available=bool(available),
            kind=adapter.kind,
            error=error,
            latency_ms=latency_ms,
        )


def _fallback_descriptor() -> ProviderDescriptor:
    return ProviderDescriptor(
        id=FALLBACK_PROVIDER_ID,
        name="Deterministic Fallback",
        requires_key=False,
        supported_models=[FALLBACK_MODEL],
        priority=FALLBACK_PRIORITY,
        available=True,
        kind="fallback",
    )
