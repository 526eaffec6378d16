"""Provider adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from venture_agent.types import GenerationRequest, GenerationResponse, ProviderKind


class ProviderAdapter(ABC):
    """One LLM backend behind a uniform generate contract.

    Subclasses declare their identity as class attributes. `generate` raises
    `ProviderUnavailableError` when a credential is missing and
    `ProviderRequestFailedError` for transport errors, non-2xx statuses and
    malformed payloads. Vendor JSON never leaves the adapter.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    kind: ClassVar[ProviderKind] = "cloud"
    requires_key: ClassVar[bool] = True
    supported_models: ClassVar[tuple[str, ...]] = ()
    base_priority: ClassVar[int] = 0
    rate_limit_per_minute: ClassVar[int] = 60

    @abstractmethod
    async def is_available(self) -> bool:
        """Cheap reachability probe."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run one completion."""

    @property
    def default_model(self) -> str:
        return self.supported_models[0]


def estimate_tokens(text: str) -> int:
    """Rough usage estimate for vendors that do not report tokens (4 chars/token)."""
    if not text:
        return 0
    return max(1, len(text) // 4)
