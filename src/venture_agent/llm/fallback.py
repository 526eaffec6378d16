"""Deterministic fallback replies used when every provider is exhausted."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from venture_agent.types import ChatMessage


@dataclass(slots=True, frozen=True)
class FallbackReply:
    content: str
    confidence: float
    topic: str


@dataclass(slots=True, frozen=True)
class _Bucket:
    topic: str
    pattern: re.Pattern[str]
    template: str
    confidence: float


def _bucket(topic: str, keywords: Sequence[str], template: str, confidence: float) -> _Bucket:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    return _Bucket(topic, re.compile(rf"\b(?:{alternatives})\b"), template, confidence)


# Checked in order; first match wins.
_BUCKETS: tuple[_Bucket, ...] = (
    _bucket(
        "greeting",
        ("hello", "hi", "hey", "greetings", "good morning", "good afternoon", "good evening"),
        "Hello! I'm Meta3's AI Assistant. I'm currently running in fallback mode, but I can "
        "still help with questions about Meta3 Ventures, our investment focus and how we "
        "support startups. What would you like to know?",
        0.75,
    ),
    _bucket(
        "investment",
        ("investment", "investments", "invest", "investing", "funding", "fund", "capital", "valuation"),
        "Meta3 Ventures focuses on AI and deep tech investments. We typically invest in "
        "early-stage startups with strong technical teams, usually $100K-$2M in seed to "
        "Series A rounds. Would you like to learn more about our investment criteria or "
        "apply for funding?",
        0.7,
    ),
    _bucket(
        "product",
        ("ai", "artificial intelligence", "startup", "startups", "company", "product", "technology", "portfolio"),
        "Meta3 Ventures backs companies building the next generation of AI technologies, "
        "from foundational models to applied AI. Beyond capital we provide strategic "
        "support, technical guidance and access to our network. What stage is your "
        "startup at?",
        0.65,
    ),
    _bucket(
        "support",
        ("help", "support", "problem", "issue", "question"),
        "I'm here to help! I can answer questions about Meta3 Ventures, our investment "
        "process, AI technologies and startup advice. What specific help do you need?",
        0.65,
    ),
    _bucket(
        "contact",
        ("contact", "reach", "email", "call", "get in touch"),
        "You can reach Meta3 Ventures through the contact form on meta3ventures.com, or "
        "apply directly through our application portal if you are seeking investment. "
        "How can I help you get in touch?",
        0.7,
    ),
)

_DEFAULT = FallbackReply(
    content=(
        "Thank you for your message! I'm Meta3's AI Assistant, currently running in "
        "fallback mode. I can help with questions about Meta3 Ventures, our investment "
        "focus, AI technologies and startup guidance. Could you tell me a bit more about "
        "what you're looking for?"
    ),
    confidence=0.6,
    topic="default",
)


def generate_fallback(messages: Sequence[ChatMessage]) -> FallbackReply:
    """Pick a canned reply from the last user message. Never raises."""
    text = ""
    for message in reversed(messages):
        if message.role == "user":
            text = message.content
            break
    else:
        if messages:
            text = messages[-1].content

    lowered = text.lower()
    for bucket in _BUCKETS:
        if bucket.pattern.search(lowered):
            return FallbackReply(bucket.template, bucket.confidence, bucket.topic)
    return _DEFAULT
