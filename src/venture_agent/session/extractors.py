"""Pluggable heuristics that keep a session's context up to date."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Protocol

from venture_agent.types import SessionMessage, UserProfile


class ProfileExtractor(Protocol):
    def update(self, profile: UserProfile, content: str) -> None:
        """Fold facts from one user message into the profile."""


class TopicExtractor(Protocol):
    def extract(self, content: str) -> list[str]:
        """Topics mentioned in one user message, in a stable order."""


class Summarizer(Protocol):
    def summarize(self, messages: Sequence[SessionMessage]) -> str:
        """Condense the message log into a short summary."""


_COMPANY_PATTERNS = (
    re.compile(r"(?:my company|we are|our company is|i work at|i'm from) ([a-zA-Z0-9\s]+)", re.IGNORECASE),
    re.compile(r"(?:company called|startup called|business called) ([a-zA-Z0-9\s]+)", re.IGNORECASE),
)

_SECTOR_INTERESTS = ("ai", "blockchain", "fintech", "saas", "healthtech", "cleantech", "edtech")

DEFAULT_TOPIC_KEYWORDS: tuple[str, ...] = (
    "ai",
    "artificial intelligence",
    "machine learning",
    "blockchain",
    "funding",
    "investment",
    "venture capital",
    "startup",
    "fintech",
    "saas",
    "software",
    "technology",
    "innovation",
    "market analysis",
    "business plan",
    "strategy",
    "growth",
    "scaling",
    "partnership",
)


def _word_pattern(keywords: Sequence[str]) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(re.escape(keyword) for keyword in keywords) + r")\b")


class RegexProfileExtractor:
    """Company names from phrasing patterns; stage and sector interests from keywords."""

    _stage_evaluation = _word_pattern(("funding", "investment"))
    _stage_partnership = _word_pattern(("partner", "partnership", "apply"))
    _sectors = _word_pattern(_SECTOR_INTERESTS)

    def update(self, profile: UserProfile, content: str) -> None:
        for pattern in _COMPANY_PATTERNS:
            match = pattern.search(content)
            if match and match.group(1).strip():
                profile.company = match.group(1).strip()
                break

        lowered = content.lower()
        if self._stage_evaluation.search(lowered):
            profile.stage = "evaluation"
        elif self._stage_partnership.search(lowered):
            profile.stage = "partnership"

        for sector in self._sectors.findall(lowered):
            if sector not in profile.interests:
                profile.interests.append(sector)


class KeywordTopicExtractor:
    def __init__(self, keywords: Sequence[str] = DEFAULT_TOPIC_KEYWORDS) -> None:
        self.keywords = tuple(keywords)
        self._pattern = _word_pattern(self.keywords)

    def extract(self, content: str) -> list[str]:
        found = set(self._pattern.findall(content.lower()))
        return [keyword for keyword in self.keywords if keyword in found]


class ExcerptSummarizer:
    """`role: excerpt` lines for the last few non-system messages."""

    def __init__(self, window: int = 10, excerpt_chars: int = 100) -> None:
        self.window = window
        self.excerpt_chars = excerpt_chars

    def summarize(self, messages: Sequence[SessionMessage]) -> str:
        lines = [
            f"{message.role}: {message.content[: self.excerpt_chars]}"
            for message in messages[-self.window :]
            if message.role != "system"
        ]
        return "\n".join(lines)
