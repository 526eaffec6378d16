"""Tracing and cost accounting for agent turns."""

from __future__ import annotations

import re
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from venture_agent.types import ToolTrace

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    session_id: str
    agent_id: str
    question: str
    answer: str
    provider: str
    model: str
    message_type: str
    confidence: float
    degraded_reason: str | None
    knowledge_ids: list[str]
    tool_traces: list[ToolTrace]
    input_tokens: int
    output_tokens: int
    estimated_cost_usd: float
    latency_ms: float
    tools_failed: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None


@dataclass(slots=True)
class CostModel:
    """Simple token pricing model (USD per 1K tokens)."""

    input_per_1k: float = 0.005
    output_per_1k: float = 0.015

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens / 1000.0) * self.input_per_1k + (
            output_tokens / 1000.0
        ) * self.output_per_1k


class TraceStore:
    """In-memory trace storage for API-level observability.

    Keeps the newest `max_records` entries. Turns answered by the
    deterministic fallback are recorded at zero cost.
    """

    def __init__(self, *, cost_model: CostModel | None = None, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._cost_model = cost_model or CostModel()
        self.max_records = max_records

    def create_record(
        self,
        *,
        session_id: str,
        agent_id: str,
        question: str,
        answer: str,
        provider: str,
        model: str,
        message_type: str,
        confidence: float,
        degraded_reason: str | None,
        knowledge_ids: list[str],
        tool_traces: list[ToolTrace],
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
        tools_failed: int = 0,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        cost = 0.0
        if degraded_reason is None:
            cost = self._cost_model.estimate_cost(input_tokens, output_tokens)
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            session_id=session_id,
            agent_id=agent_id,
            question=question,
            answer=answer,
            provider=provider,
            model=model,
            message_type=message_type,
            confidence=confidence,
            degraded_reason=degraded_reason,
            knowledge_ids=knowledge_ids,
            tool_traces=tool_traces,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost_usd=cost,
            latency_ms=latency_ms,
            tools_failed=tools_failed,
        )
        self._records[trace_id] = record
        while len(self._records) > self.max_records:
            self._records.pop(next(iter(self._records)))
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        if limit <= 0:
            return []
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, Any]:
        """Aggregate core observability metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "avg_confidence": 0.0,
                "fallback_rate": 0.0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
                "total_estimated_cost_usd": 0.0,
                "requests_by_provider": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        degraded = sum(1 for record in records if record.degraded)

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "avg_confidence": sum(record.confidence for record in records) / total,
            "fallback_rate": degraded / total,
            "total_input_tokens": sum(record.input_tokens for record in records),
            "total_output_tokens": sum(record.output_tokens for record in records),
            "total_estimated_cost_usd": sum(record.estimated_cost_usd for record in records),
            "requests_by_provider": dict(Counter(record.provider for record in records)),
        }


class Timer:
    """Simple context timer used by the pipeline and tool executor."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
