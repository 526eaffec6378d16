"""Conversation sessions and the context derived from them."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import asdict, replace
from datetime import datetime, timedelta, timezone
from typing import Any

from venture_agent.config import SessionConfig
from venture_agent.session.extractors import (
    ExcerptSummarizer,
    KeywordTopicExtractor,
    ProfileExtractor,
    RegexProfileExtractor,
    Summarizer,
    TopicExtractor,
)
from venture_agent.types import ConversationSession, Role, SessionContext, SessionMessage

logger = logging.getLogger(__name__)

_SESSION_TITLES = {
    "meta3-research": "Market Research Discussion",
    "meta3-investment": "Investment Consultation",
    "venture-launch": "Startup Planning Session",
    "general-conversation": "General Chat",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Owns every `ConversationSession` in the process.

    One object per session id. All mutation happens under a single lock, so
    appends within a session are strictly ordered by arrival and timestamps
    never move backwards.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        profile_extractor: ProfileExtractor | None = None,
        topic_extractor: TopicExtractor | None = None,
        summarizer: Summarizer | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config or SessionConfig()
        self._profile_extractor = profile_extractor or RegexProfileExtractor()
        self._topic_extractor = topic_extractor or KeywordTopicExtractor()
        self._summarizer = summarizer or ExcerptSummarizer(
            window=self.config.summary_window,
            excerpt_chars=self.config.summary_excerpt_chars,
        )
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}
        self._user_sessions: dict[str, list[str]] = {}
        self._lock = threading.RLock()

    def get_or_create_session(
        self,
        user_id: str,
        session_id: str | None = None,
        agent_hint: str | None = None,
    ) -> ConversationSession:
        with self._lock:
            now = self._clock()
            if session_id is not None and session_id in self._sessions:
                session = self._sessions[session_id]
                session.last_activity = max(now, session.last_activity)
                return session

            if session_id is None and agent_hint is None:
                for session in self._sorted_user_sessions(user_id):
                    if session.status == "active":
                        session.last_activity = max(now, session.last_activity)
                        return session

            return self._create(user_id, session_id, agent_hint, now)

    def get_session(self, session_id: str) -> ConversationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        return session

    def add_message(
        self,
        session_id: str,
        role: Role,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> SessionMessage:
        with self._lock:
            session = self.get_session(session_id)
            timestamp = self._clock()
            if session.messages and session.messages[-1].timestamp > timestamp:
                timestamp = session.messages[-1].timestamp
            message = SessionMessage(
                message_id=f"msg-{uuid.uuid4().hex[:12]}",
                role=role,
                content=content,
                timestamp=timestamp,
                metadata=dict(metadata or {}),
            )
            session.messages.append(message)
            session.last_activity = max(timestamp, session.last_activity)
            self._update_context(session, message)
            return message

    def get_context(self, session_id: str) -> SessionContext:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return SessionContext()
            context = session.context
            return SessionContext(
                recent_messages=session.messages[-self.config.recent_message_window :],
                summary=context.summary,
                topics=list(context.topics),
                user_profile=replace(
                    context.user_profile, interests=list(context.user_profile.interests)
                ),
            )

    def get_user_sessions(self, user_id: str) -> list[ConversationSession]:
        """The user's sessions, most recently active first."""
        with self._lock:
            return self._sorted_user_sessions(user_id)

    def archive_inactive_sessions(self, days_inactive: int | None = None) -> int:
        days = self.config.inactive_days if days_inactive is None else days_inactive
        cutoff = self._clock() - timedelta(days=days)
        archived = 0
        with self._lock:
            for session in self._sessions.values():
                if session.status == "active" and session.last_activity < cutoff:
                    session.status = "archived"
                    archived += 1
        if archived:
            logger.info("Archived %d sessions inactive for more than %d days", archived, days)
        return archived

    def export_session(self, session_id: str) -> dict[str, Any]:
        with self._lock:
            session = self.get_session(session_id)
            data = asdict(session)
        data["message_count"] = len(session.messages)
        data["duration_seconds"] = (session.last_activity - session.created_at).total_seconds()
        data["exported_at"] = self._clock()
        return data

    def _create(
        self,
        user_id: str,
        session_id: str | None,
        agent_hint: str | None,
        now: datetime,
    ) -> ConversationSession:
        new_id = session_id or f"session-{uuid.uuid4().hex}"
        session = ConversationSession(
            session_id=new_id,
            user_id=user_id,
            agent_id=agent_hint,
            title=_SESSION_TITLES.get(agent_hint or "general-conversation", "Chat Session"),
            created_at=now,
            last_activity=now,
        )
        self._sessions[new_id] = session
        self._user_sessions.setdefault(user_id, []).append(new_id)
        logger.debug("Created session %s for user %s", new_id, user_id)
        return session

    def _sorted_user_sessions(self, user_id: str) -> list[ConversationSession]:
        sessions = [self._sessions[sid] for sid in self._user_sessions.get(user_id, [])]
        return sorted(sessions, key=lambda item: item.last_activity, reverse=True)

    def _update_context(self, session: ConversationSession, message: SessionMessage) -> None:
        context = session.context
        if message.role == "user":
            self._profile_extractor.update(context.user_profile, message.content)
            for topic in self._topic_extractor.extract(message.content):
                if topic in context.topics:
                    context.topics.remove(topic)
                context.topics.append(topic)
            del context.topics[: -self.config.max_topics]

        if len(session.messages) % self.config.summary_every == 0:
            context.summary = self._summarizer.summarize(session.messages)
