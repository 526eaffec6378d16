"""Error taxonomy for the agent pipeline."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for pipeline errors."""


class ProviderUnavailableError(AgentError):
    """Probe failed or the provider credential is missing."""

    def __init__(self, provider_id: str, reason: str) -> None:
        super().__init__(f"{provider_id} unavailable: {reason}")
        self.provider_id = provider_id
        self.reason = reason


class ProviderRequestFailedError(AgentError):
    """Non-success response, transport failure or malformed payload."""

    def __init__(self, provider_id: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider_id} request failed: {reason}")
        self.provider_id = provider_id
        self.reason = reason
        self.status_code = status_code


class AllProvidersExhaustedError(AgentError):
    """Every candidate in the fallback chain failed. Never leaves the orchestrator."""

    def __init__(self, attempted: list[str]) -> None:
        joined = ", ".join(attempted) if attempted else "none"
        super().__init__(f"All providers exhausted (attempted: {joined})")
        self.attempted = attempted


class ToolExecutionError(AgentError):
    """Bad directive parameters or a failure inside the tool."""

    def __init__(self, tool_id: str, reason: str) -> None:
        super().__init__(f"{tool_id}: {reason}")
        self.tool_id = tool_id
        self.reason = reason


class RetrievalError(AgentError):
    """Index not ready or search failure."""
