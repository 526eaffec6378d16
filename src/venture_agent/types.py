"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]
FinishReason = Literal["stop", "length", "content_filter"]
ProviderKind = Literal["cloud", "local", "fallback"]
AttachmentKind = Literal["link", "action", "document", "llm_metadata", "fallback_notice"]
SessionStatus = Literal["active", "archived"]

DIAGNOSTIC_ATTACHMENTS: frozenset[str] = frozenset({"llm_metadata", "fallback_notice"})


@dataclass(slots=True)
class DocumentMetadata:
    title: str
    category: str
    source: str
    timestamp: datetime
    tags: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Document:
    """A knowledge document stored in the retrieval index."""

    id: str
    content: str
    metadata: DocumentMetadata
    embedding: list[float] = field(default_factory=list)


@dataclass(slots=True)
class SearchResult:
    """A retrieval hit with cosine similarity and 1-based rank."""

    document: Document
    similarity: float
    rank: int = 0


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """One message in a generation request."""

    role: Role
    content: str


@dataclass(slots=True, frozen=True)
class SessionMessage:
    """One entry of a session's append-only message log."""

    message_id: str
    role: Role
    content: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class UserProfile:
    company: str | None = None
    stage: str | None = None
    interests: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ConversationContext:
    topics: list[str] = field(default_factory=list)
    user_profile: UserProfile = field(default_factory=UserProfile)
    summary: str = ""


@dataclass(slots=True)
class ConversationSession:
    session_id: str
    user_id: str
    agent_id: str | None
    title: str
    created_at: datetime
    last_activity: datetime
    messages: list[SessionMessage] = field(default_factory=list)
    context: ConversationContext = field(default_factory=ConversationContext)
    status: SessionStatus = "active"


@dataclass(slots=True)
class SessionContext:
    """Read-only view of a session handed to prompt composition."""

    recent_messages: list[SessionMessage] = field(default_factory=list)
    summary: str = ""
    topics: list[str] = field(default_factory=list)
    user_profile: UserProfile = field(default_factory=UserProfile)


@dataclass(slots=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(slots=True)
class GenerationRequest:
    model: str
    messages: list[ChatMessage]
    temperature: float = 0.7
    max_tokens: int = 1000
    top_p: float = 0.9


@dataclass(slots=True)
class GenerationResponse:
    """Normalized completion returned by every adapter and the orchestrator.

    `degraded_reason` and `fallback_confidence` are only set when the reply
    came from the deterministic fallback generator.
    """

    id: str
    content: str
    model: str
    usage: TokenUsage
    finish_reason: FinishReason
    processing_time_ms: float
    provider: str = ""
    degraded_reason: str | None = None
    fallback_confidence: float | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None


@dataclass(slots=True)
class ProviderDescriptor:
    """Probe-derived view of one provider; never persisted."""

    id: str
    name: str
    requires_key: bool
    supported_models: list[str]
    priority: int
    available: bool
    kind: ProviderKind = "cloud"
    error: str | None = None
    latency_ms: float | None = None

    @property
    def default_model(self) -> str | None:
        return self.supported_models[0] if self.supported_models else None


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float


@dataclass(slots=True)
class ToolCall:
    """A parsed tool directive."""

    tool_id: str
    params: dict[str, Any]


@dataclass(slots=True)
class ToolInvocation:
    """Outcome of one directive; lives only as long as its response."""

    tool_id: str
    parameters: dict[str, Any] | None
    result: Any = None
    error: str | None = None
    latency_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class Attachment:
    kind: AttachmentKind
    title: str
    url: str | None = None
    action: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def diagnostic(self) -> bool:
        return self.kind in DIAGNOSTIC_ATTACHMENTS


@dataclass(slots=True)
class QuickAction:
    label: str
    value: str


@dataclass(slots=True)
class AgentReply:
    """Public result of one pipeline turn."""

    content: str
    confidence: float
    attachments: list[Attachment]
    quick_actions: list[QuickAction]
    session_id: str
    agent_id: str
    provider: str
    model: str
    message_type: str
    trace_id: str = ""
