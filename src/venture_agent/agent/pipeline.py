"""Per-message agent pipeline: context, retrieval, generation, tools, shaping."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from venture_agent.agent.directives import DIRECTIVE_INSTRUCTIONS, ToolDirectiveExecutor
from venture_agent.agent.profiles import AgentProfile, AgentProfileRegistry
from venture_agent.agent.registry import ToolSpec, render_preview
from venture_agent.config import RetrievalConfig, SessionConfig, ShapingConfig
from venture_agent.errors import RetrievalError
from venture_agent.llm.orchestrator import FallbackOrchestrator
from venture_agent.obs.tracing import Timer, TraceStore, estimate_token_count
from venture_agent.retrieval.service import KnowledgeService
from venture_agent.session.manager import SessionManager
from venture_agent.shaping.confidence import score_fallback, score_generation
from venture_agent.shaping.controller import ResponseController
from venture_agent.types import (
    AgentReply,
    Attachment,
    ChatMessage,
    GenerationResponse,
    SearchResult,
    SessionContext,
    SessionMessage,
    ToolInvocation,
    ToolTrace,
)

logger = logging.getLogger(__name__)

PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{system_prompt}"),
        MessagesPlaceholder("history"),
        ("human", "{input}"),
    ]
)

_ROLE_BY_TYPE = {"system": "system", "human": "user", "ai": "assistant"}


class AgentPipeline:
    """Top-level entry point: one inbound chat message in, one `AgentReply` out.

    Generation failures never escape: the orchestrator always produces a
    response, tool failures are rendered inline and retrieval failures
    degrade to a prompt without knowledge.
    """

    def __init__(
        self,
        *,
        orchestrator: FallbackOrchestrator,
        knowledge: KnowledgeService,
        sessions: SessionManager,
        tools: ToolDirectiveExecutor,
        profiles: AgentProfileRegistry,
        controller: ResponseController,
        trace_store: TraceStore,
        default_model: str = "qwen2.5:latest",
        default_agent_id: str = "general-conversation",
        retrieval_config: RetrievalConfig | None = None,
        session_config: SessionConfig | None = None,
        shaping_config: ShapingConfig | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.knowledge = knowledge
        self.sessions = sessions
        self.tools = tools
        self.profiles = profiles
        self.controller = controller
        self.trace_store = trace_store
        self.default_model = default_model
        self.default_agent_id = default_agent_id
        self.retrieval_config = retrieval_config or RetrievalConfig()
        self.session_config = session_config or SessionConfig()
        self.shaping_config = shaping_config or ShapingConfig()

    async def respond(
        self,
        message: str,
        *,
        user_id: str,
        session_id: str | None = None,
        agent_id: str | None = None,
    ) -> AgentReply:
        if not message or not message.strip():
            raise ValueError("message must not be empty")
        if len(message) > self.shaping_config.max_message_chars:
            raise ValueError(
                f"message exceeds {self.shaping_config.max_message_chars} characters"
            )
        if agent_id is not None and agent_id not in self.profiles:
            raise ValueError(f"Unknown agent: {agent_id}")

        with Timer() as timer:
            session = self.sessions.get_or_create_session(user_id, session_id, agent_hint=agent_id)
            profile = self.profiles.get(agent_id or session.agent_id or self.default_agent_id)
            context = self.sessions.get_context(session.session_id)
            analysis = self.controller.analyze(message, context.recent_messages)
            self.sessions.add_message(session.session_id, "user", message)

            results = self._retrieve(message, profile)
            prompt = self.build_messages(profile, context, results, message)
            generation = await self.orchestrator.generate(
                profile.preferred_model or self.default_model,
                prompt,
                preferred_provider=profile.preferred_provider,
            )

            invocations: list[ToolInvocation] = []
            if generation.degraded:
                content = generation.content
                confidence = score_fallback(
                    generation.fallback_confidence or 0.0,
                    delta=self.shaping_config.fallback_confidence_delta,
                    floor=self.shaping_config.fallback_confidence_floor,
                )
                diagnostics = [_fallback_notice(generation)]
            else:
                outcome = await self.tools.execute(generation.content, profile.tools)
                content = outcome.text
                invocations = outcome.invocations
                confidence = score_generation(generation)
                diagnostics = [_llm_metadata(generation, outcome.tools_used)]

            attachments = [_document_attachment(result) for result in results] + diagnostics
            shaped = self.controller.shape(content, analysis, attachments)
            self.sessions.add_message(
                session.session_id,
                "assistant",
                shaped.content,
                metadata={
                    "agent_id": profile.id,
                    "provider": generation.provider,
                    "model": generation.model,
                    "confidence": confidence,
                    "message_type": analysis.message_type,
                },
            )

        record = self.trace_store.create_record(
            session_id=session.session_id,
            agent_id=profile.id,
            question=message,
            answer=shaped.content,
            provider=generation.provider,
            model=generation.model,
            message_type=analysis.message_type,
            confidence=confidence,
            degraded_reason=generation.degraded_reason,
            knowledge_ids=[result.document.id for result in results],
            tool_traces=[
                _tool_trace(item, self.tools.registry.preview_chars) for item in invocations
            ],
            input_tokens=generation.usage.prompt_tokens
            or sum(estimate_token_count(item.content) for item in prompt),
            output_tokens=generation.usage.completion_tokens or estimate_token_count(content),
            latency_ms=timer.elapsed_ms,
            tools_failed=sum(1 for item in invocations if not item.succeeded),
        )
        logger.info(
            "Replied session=%s agent=%s provider=%s confidence=%.2f in %.0fms",
            session.session_id,
            profile.id,
            generation.provider,
            confidence,
            timer.elapsed_ms,
        )

        return AgentReply(
            content=shaped.content,
            confidence=confidence,
            attachments=shaped.attachments,
            quick_actions=shaped.quick_actions,
            session_id=session.session_id,
            agent_id=profile.id,
            provider=generation.provider,
            model=generation.model,
            message_type=analysis.message_type,
            trace_id=record.trace_id,
        )

    def build_messages(
        self,
        profile: AgentProfile,
        context: SessionContext,
        results: Sequence[SearchResult],
        message: str,
    ) -> list[ChatMessage]:
        """Compose the provider prompt through the LangChain chat template."""
        specs = self.tools.registry.specs(profile.tools)
        rendered = PROMPT.format_messages(
            system_prompt=compose_system_prompt(profile, specs, context, results),
            history=self._history(context.recent_messages),
            input=message,
        )
        return [_to_chat_message(item) for item in rendered]

    def _history(self, messages: Sequence[SessionMessage]) -> list[BaseMessage]:
        limit = self.session_config.history_in_prompt
        if limit == 0:
            return []
        history: list[BaseMessage] = []
        for item in messages[-limit:]:
            if item.role == "user":
                history.append(HumanMessage(content=item.content))
            elif item.role == "assistant":
                history.append(AIMessage(content=item.content))
        return history

    def _retrieve(self, message: str, profile: AgentProfile) -> list[SearchResult]:
        top_k = self.retrieval_config.prompt_top_k
        threshold = self.retrieval_config.prompt_threshold
        try:
            if profile.knowledge_categories:
                results = [
                    item
                    for item in self.knowledge.multi_category_search(
                        message, profile.knowledge_categories, top_k=top_k
                    )
                    if item.similarity >= threshold
                ]
                if results:
                    return results
            return self.knowledge.search(message, top_k=top_k, threshold=threshold)
        except RetrievalError as exc:
            logger.warning("Retrieval failed, continuing without knowledge: %s", exc)
            return []


def compose_system_prompt(
    profile: AgentProfile,
    tools: Sequence[ToolSpec],
    context: SessionContext,
    results: Sequence[SearchResult],
) -> str:
    sections = [profile.system_prompt]

    if tools:
        catalogue = "\n".join(f"- {spec.id} ({spec.name}): {spec.description}" for spec in tools)
        sections.append(f"Available Tools:\n{catalogue}\n\n{DIRECTIVE_INSTRUCTIONS}")

    user_profile = {
        key: value
        for key, value in (
            ("company", context.user_profile.company),
            ("stage", context.user_profile.stage),
            ("interests", context.user_profile.interests),
        )
        if value
    }
    if user_profile:
        sections.append(f"User Context: {json.dumps(user_profile)}")

    if context.summary:
        sections.append(f"Conversation Summary: {context.summary}")

    if results:
        knowledge = "\n\n".join(
            f"{item.document.metadata.title}: {item.document.content}" for item in results
        )
        sections.append(f"Relevant Knowledge Base Information:\n{knowledge}")

    return "\n\n".join(sections)


def _to_chat_message(message: BaseMessage) -> ChatMessage:
    role = _ROLE_BY_TYPE.get(message.type, "user")
    content = message.content if isinstance(message.content, str) else str(message.content)
    return ChatMessage(role=role, content=content)


def _document_attachment(result: SearchResult) -> Attachment:
    document = result.document
    return Attachment(
        kind="document",
        title=document.metadata.title,
        data={
            "id": document.id,
            "category": document.metadata.category,
            "similarity": round(result.similarity, 4),
        },
    )


def _llm_metadata(generation: GenerationResponse, tools_used: list[str]) -> Attachment:
    return Attachment(
        kind="llm_metadata",
        title="Generation details",
        data={
            "model": generation.model,
            "provider": generation.provider,
            "processing_time_ms": round(generation.processing_time_ms, 1),
            "tokens_used": generation.usage.total_tokens,
            "finish_reason": generation.finish_reason,
            "tools_used": tools_used,
        },
    )


def _fallback_notice(generation: GenerationResponse) -> Attachment:
    return Attachment(
        kind="fallback_notice",
        title="Answered in fallback mode",
        data={
            "reason": generation.degraded_reason,
            "fallback_confidence": generation.fallback_confidence,
        },
    )


def _tool_trace(invocation: ToolInvocation, preview_chars: int) -> ToolTrace:
    if invocation.succeeded:
        preview = render_preview(invocation.result, limit=preview_chars)
    else:
        preview = f"ERROR: {invocation.error}"
    return ToolTrace(
        name=invocation.tool_id,
        input_payload=invocation.parameters or {},
        output_preview=preview,
        latency_ms=invocation.latency_ms,
    )
