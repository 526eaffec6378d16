from datetime import datetime, timedelta, timezone

import pytest

from venture_agent.config import SessionConfig
from venture_agent.session.extractors import KeywordTopicExtractor, RegexProfileExtractor
from venture_agent.session.manager import SessionManager
from venture_agent.types import UserProfile


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 3, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_twelve_messages_produce_summary_and_capped_topics() -> None:
    manager = SessionManager(SessionConfig(max_topics=3, summary_every=5))
    session = manager.get_or_create_session("user-1")
    turns = [
        "We need funding for our fintech startup",
        "Tell me about blockchain and saas growth",
        "What about machine learning strategy and scaling",
        "Any partnership or innovation programs?",
    ]

    for i in range(12):
        role = "user" if i % 2 == 0 else "assistant"
        manager.add_message(session.session_id, role, turns[(i // 2) % len(turns)])

    context = manager.get_context(session.session_id)
    assert context.summary
    assert len(context.topics) <= 3
    assert len(context.recent_messages) == 10
    timestamps = [m.timestamp for m in manager.get_session(session.session_id).messages]
    assert timestamps == sorted(timestamps)


def test_reuses_latest_active_session_without_hint() -> None:
    clock = _Clock()
    manager = SessionManager(clock=clock)
    first = manager.get_or_create_session("user-1")
    clock.now += timedelta(minutes=1)

    again = manager.get_or_create_session("user-1")
    hinted = manager.get_or_create_session("user-1", agent_hint="meta3-investment")

    assert again.session_id == first.session_id
    assert hinted.session_id != first.session_id
    assert hinted.title == "Investment Consultation"


def test_explicit_unknown_session_id_is_created() -> None:
    manager = SessionManager()

    session = manager.get_or_create_session("user-1", session_id="abc")

    assert session.session_id == "abc"
    assert manager.get_session("abc") is session
    with pytest.raises(KeyError):
        manager.get_session("missing")
    assert manager.get_context("missing").recent_messages == []


def test_same_session_id_returns_same_session() -> None:
    clock = _Clock()
    manager = SessionManager(clock=clock)

    first = manager.get_or_create_session("user-1", session_id="sid-7")
    first_activity = first.last_activity
    clock.now += timedelta(seconds=5)
    second = manager.get_or_create_session("user-1", session_id="sid-7")

    assert second.session_id == first.session_id == "sid-7"
    assert second.last_activity >= first_activity
    assert len(manager.get_user_sessions("user-1")) == 1


def test_timestamps_never_move_backwards() -> None:
    clock = _Clock()
    manager = SessionManager(clock=clock)
    session = manager.get_or_create_session("user-1")
    first = manager.add_message(session.session_id, "user", "hello")

    clock.now -= timedelta(hours=1)
    second = manager.add_message(session.session_id, "assistant", "hi")

    assert second.timestamp == first.timestamp


def test_archive_and_export() -> None:
    clock = _Clock()
    manager = SessionManager(clock=clock)
    stale = manager.get_or_create_session("user-1", session_id="stale")
    manager.add_message(stale.session_id, "user", "hello")
    clock.now += timedelta(days=8)
    fresh = manager.get_or_create_session("user-2")

    assert manager.archive_inactive_sessions() == 1
    assert stale.status == "archived"
    assert fresh.status == "active"
    assert manager.get_user_sessions("user-1") == [stale]

    exported = manager.export_session("stale")
    assert exported["message_count"] == 1
    assert exported["session_id"] == "stale"
    assert exported["exported_at"] == clock.now


def test_profile_and_topic_extraction() -> None:
    profile = UserProfile()
    extractor = RegexProfileExtractor()

    extractor.update(profile, "My company Acme Labs is looking for funding in fintech and AI")

    assert profile.company.startswith("Acme Labs")
    assert profile.stage == "evaluation"
    assert profile.interests == ["fintech", "ai"]
    assert KeywordTopicExtractor().extract("Said about AI, said nothing about aid") == ["ai"]
