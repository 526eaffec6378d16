"""Wires the process-wide components together."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from venture_agent.agent.directives import ToolDirectiveExecutor
from venture_agent.agent.pipeline import AgentPipeline
from venture_agent.agent.profiles import AgentProfileRegistry
from venture_agent.agent.registry import ToolRegistry
from venture_agent.agent.tools import register_builtin_tools
from venture_agent.config import (
    RetrievalConfig,
    SessionConfig,
    Settings,
    ShapingConfig,
    ToolConfig,
)
from venture_agent.ingest.embedder import HashingEmbedder
from venture_agent.ingest.seed import seed_index
from venture_agent.llm.adapters import build_default_adapters
from venture_agent.llm.base import ProviderAdapter
from venture_agent.llm.health import ProviderHealthRegistry
from venture_agent.llm.orchestrator import FallbackOrchestrator
from venture_agent.obs.logging import configure_logging
from venture_agent.obs.tracing import TraceStore
from venture_agent.retrieval.service import KnowledgeService
from venture_agent.retrieval.vector_store import InMemoryDocumentIndex
from venture_agent.session.manager import SessionManager
from venture_agent.shaping.controller import ResponseController
from venture_agent.types import ToolTrace

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    settings: Settings
    http_client: httpx.AsyncClient
    registry: ProviderHealthRegistry
    orchestrator: FallbackOrchestrator
    index: InMemoryDocumentIndex
    knowledge: KnowledgeService
    tools: ToolRegistry
    executor: ToolDirectiveExecutor
    profiles: AgentProfileRegistry
    sessions: SessionManager
    controller: ResponseController
    traces: TraceStore
    pipeline: AgentPipeline

    async def aclose(self) -> None:
        await self.http_client.aclose()


def _log_tool_trace(trace: ToolTrace) -> None:
    logger.debug("Tool %s -> %s (%.1fms)", trace.name, trace.output_preview, trace.latency_ms)


def build_context(
    settings: Settings | None = None,
    *,
    adapters: Sequence[ProviderAdapter] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AppContext:
    """Build every component from settings.

    `adapters` replaces the default provider set, which is how tests inject
    scripted providers.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    retrieval_config = RetrievalConfig()
    session_config = SessionConfig()
    shaping_config = ShapingConfig()
    tool_config = ToolConfig()
    orchestrator_config = settings.orchestrator_config()

    client = http_client or httpx.AsyncClient()
    provider_adapters = list(adapters) if adapters is not None else build_default_adapters(settings, client)
    registry = ProviderHealthRegistry(
        provider_adapters,
        cache_ttl_seconds=orchestrator_config.health_cache_seconds,
        probe_timeout_seconds=orchestrator_config.probe_timeout_seconds,
    )
    orchestrator = FallbackOrchestrator(registry, config=orchestrator_config)

    index = InMemoryDocumentIndex(HashingEmbedder(retrieval_config.embedding_dimension))
    if settings.seed_knowledge:
        seed_index(index)
    knowledge = KnowledgeService(index, retrieval_config)

    tools = ToolRegistry(preview_chars=tool_config.result_preview_chars)
    register_builtin_tools(tools, knowledge)
    tools.set_observer(_log_tool_trace)
    executor = ToolDirectiveExecutor(tools, timeout_seconds=tool_config.tool_timeout_seconds)

    profiles = AgentProfileRegistry()
    sessions = SessionManager(session_config)
    controller = ResponseController(shaping_config)
    traces = TraceStore()

    pipeline = AgentPipeline(
        orchestrator=orchestrator,
        knowledge=knowledge,
        sessions=sessions,
        tools=executor,
        profiles=profiles,
        controller=controller,
        trace_store=traces,
        default_model=settings.default_model,
        default_agent_id=settings.default_agent_id,
        retrieval_config=retrieval_config,
        session_config=session_config,
        shaping_config=shaping_config,
    )
    return AppContext(
        settings=settings,
        http_client=client,
        registry=registry,
        orchestrator=orchestrator,
        index=index,
        knowledge=knowledge,
        tools=tools,
        executor=executor,
        profiles=profiles,
        sessions=sessions,
        controller=controller,
        traces=traces,
        pipeline=pipeline,
    )
