"""Heuristic reliability score for generated replies."""

from __future__ import annotations

from venture_agent.types import GenerationResponse

MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0
BASE_CONFIDENCE = 0.8
SHORT_CONTENT_CHARS = 50
LONG_CONTENT_CHARS = 500
SLOW_RESPONSE_MS = 10_000.0


def clamp_confidence(value: float) -> float:
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, value))


def score_generation(response: GenerationResponse) -> float:
    """Score a reply produced by a real provider; always in [0.3, 1.0]."""
    score = BASE_CONFIDENCE
    length = len(response.content)
    if length < SHORT_CONTENT_CHARS:
        score -= 0.2
    elif length > LONG_CONTENT_CHARS:
        score += 0.1

    if response.finish_reason == "length":
        score -= 0.1
    elif response.finish_reason == "content_filter":
        score -= 0.3

    if response.processing_time_ms > SLOW_RESPONSE_MS:
        score -= 0.1
    return clamp_confidence(score)


def score_fallback(fallback_confidence: float, delta: float = 0.2, floor: float = 0.5) -> float:
    return clamp_confidence(max(fallback_confidence - delta, floor))
