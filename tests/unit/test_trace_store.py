from venture_agent.obs.tracing import TraceStore


def _record(store: TraceStore, question: str, degraded_reason: str | None = None):
    return store.create_record(
        session_id="s-1",
        agent_id="meta3-investment",
        question=question,
        answer="answer",
        provider="fallback" if degraded_reason else "groq",
        model="llama3-8b-8192",
        message_type="simple_question",
        confidence=0.8,
        degraded_reason=degraded_reason,
        knowledge_ids=[],
        tool_traces=[],
        input_tokens=100,
        output_tokens=50,
        latency_ms=12.0,
    )


def test_list_recent_returns_newest_records() -> None:
    store = TraceStore(max_records=3)
    for i in range(5):
        _record(store, f"question {i}")

    recent = store.list_recent(limit=2)

    assert [record.question for record in recent] == ["question 3", "question 4"]
    assert len(store.list_recent(limit=10)) == 3


def test_list_recent_non_positive_limit_is_empty() -> None:
    store = TraceStore()
    _record(store, "question")

    assert store.list_recent(limit=0) == []
    assert store.list_recent(limit=-1) == []


def test_degraded_turns_cost_nothing() -> None:
    store = TraceStore()

    degraded = _record(store, "question", degraded_reason="all providers failed")
    normal = _record(store, "question")

    assert degraded.estimated_cost_usd == 0.0
    assert normal.estimated_cost_usd > 0.0
