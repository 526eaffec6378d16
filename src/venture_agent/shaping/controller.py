"""Context-aware response sizing, attachment ceilings and quick actions."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol

from venture_agent.config import ShapingConfig
from venture_agent.types import Attachment, QuickAction, SessionMessage

MessageType = Literal["greeting", "about", "simple_question", "complex_request", "follow_up"]
Intent = Literal["investment", "research", "support", "action", "information"]
Complexity = Literal["minimal", "brief", "detailed"]


@dataclass(slots=True, frozen=True)
class ResponseBudget:
    max_chars: int
    max_attachments: int


RESPONSE_BUDGETS: dict[str, ResponseBudget] = {
    "greeting": ResponseBudget(150, 2),
    "about": ResponseBudget(300, 3),
    "simple_question": ResponseBudget(200, 2),
    "complex_request": ResponseBudget(600, 4),
    "follow_up": ResponseBudget(250, 2),
}

QUICK_ACTIONS: dict[str, tuple[QuickAction, ...]] = {
    "greeting": (
        QuickAction("About Meta3", "about"),
        QuickAction("Investment Opportunities", "investment"),
        QuickAction("Apply for Funding", "apply"),
    ),
    "about": (
        QuickAction("View Portfolio", "portfolio"),
        QuickAction("Our Services", "services"),
        QuickAction("Contact Us", "contact"),
    ),
    "simple_question": (
        QuickAction("Tell me more", "more_details"),
        QuickAction("How can I get started?", "get_started"),
    ),
}

_SENTENCE_END = re.compile(r"[.!?](?=\s|\Z)")
_WHITESPACE = re.compile(r"\s")

# Title keywords that make an attachment relevant to the detected intent.
_INTENT_TITLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "investment": ("invest", "funding"),
    "action": ("apply", "contact"),
    "research": ("research", "market", "analysis"),
    "support": ("help", "support"),
}


@dataclass(slots=True)
class MessageAnalysis:
    message_type: MessageType
    intent: Intent
    complexity: Complexity
    conversation_length: int = 0
    previous_topics: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ShapedResponse:
    content: str
    attachments: list[Attachment]
    quick_actions: list[QuickAction]
    truncated: bool


class MessageClassifier(Protocol):
    def analyze(self, message: str, history: Sequence[SessionMessage]) -> MessageAnalysis:
        """Classify one inbound message given the prior conversation."""


def _phrases(*phrases: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(phrase) for phrase in phrases) + r")\b")


class KeywordMessageClassifier:
    """Keyword heuristics for message type, intent and complexity.

    Types are checked in order: greeting, about, complex request, follow-up;
    anything else is a simple question.
    """

    greeting = _phrases("hello", "hi", "hey", "good morning", "good afternoon", "good evening", "greetings")
    about = _phrases("about", "what is", "tell me about", "who are", "meta3", "company", "what do you do")
    complex_request = _phrases(
        "analysis",
        "research",
        "detailed",
        "comprehensive",
        "market sizing",
        "competitive landscape",
        "investment thesis",
        "due diligence",
        "strategy",
    )
    follow_up = _phrases("more about", "tell me more", "elaborate", "details", "explain further")
    topic_words = ("investment", "research", "funding", "portfolio", "analysis", "market", "about")

    intents: tuple[tuple[Intent, re.Pattern[str]], ...] = (
        ("investment", re.compile(r"\b(?:invest\w*|funding|capital)\b")),
        ("research", re.compile(r"\b(?:research\w*|analysis|market\w*)\b")),
        ("support", re.compile(r"\b(?:help|support|problem\w*)\b")),
        ("action", re.compile(r"\b(?:apply|contact|schedule)\b")),
    )

    short_first_message_chars = 20
    complex_word_count = 15

    def analyze(self, message: str, history: Sequence[SessionMessage]) -> MessageAnalysis:
        lowered = message.lower().strip()
        conversation_length = len(history)
        previous_topics = self._previous_topics(history)

        message_type: MessageType = "simple_question"
        if self.greeting.search(lowered) or (
            conversation_length == 0 and len(lowered) < self.short_first_message_chars
        ):
            message_type = "greeting"
        elif self.about.search(lowered):
            message_type = "about"
        elif self.complex_request.search(lowered) or len(lowered.split()) > self.complex_word_count:
            message_type = "complex_request"
        elif self.follow_up.search(lowered) or any(
            re.search(rf"\b{re.escape(topic)}\b", lowered) for topic in previous_topics
        ):
            message_type = "follow_up"

        intent: Intent = "information"
        for candidate, pattern in self.intents:
            if pattern.search(lowered):
                intent = candidate
                break

        return MessageAnalysis(
            message_type=message_type,
            intent=intent,
            complexity=_complexity(message_type, intent, conversation_length),
            conversation_length=conversation_length,
            previous_topics=previous_topics,
        )

    def _previous_topics(self, history: Sequence[SessionMessage]) -> list[str]:
        topics: list[str] = []
        for message in history:
            if message.role != "user":
                continue
            for word in re.findall(r"\w+", message.content.lower()):
                if word in self.topic_words and word not in topics:
                    topics.append(word)
        return topics


class ResponseController:
    """Fits a raw reply to the budget of its message type."""

    def __init__(
        self,
        config: ShapingConfig | None = None,
        classifier: MessageClassifier | None = None,
    ) -> None:
        self.config = config or ShapingConfig()
        self.classifier = classifier or KeywordMessageClassifier()

    def analyze(self, message: str, history: Sequence[SessionMessage] = ()) -> MessageAnalysis:
        return self.classifier.analyze(message, history)

    def shape(
        self,
        content: str,
        analysis: MessageAnalysis,
        attachments: Sequence[Attachment] = (),
    ) -> ShapedResponse:
        budget = RESPONSE_BUDGETS[analysis.message_type]
        truncated = len(content) > budget.max_chars
        if truncated:
            content = truncate_text(content, budget.max_chars)
            content += f"\n\n{self.config.continuation_prompt}"

        return ShapedResponse(
            content=content,
            attachments=self._limit_attachments(attachments, budget.max_attachments, analysis.intent),
            quick_actions=list(QUICK_ACTIONS.get(analysis.message_type, ())),
            truncated=truncated,
        )

    def _limit_attachments(
        self, attachments: Sequence[Attachment], ceiling: int, intent: Intent
    ) -> list[Attachment]:
        display = [item for item in attachments if not item.diagnostic]
        diagnostic = [item for item in attachments if item.diagnostic]
        if len(display) > ceiling:
            display = sorted(display, key=lambda item: _attachment_score(item, intent), reverse=True)
            display = display[:ceiling]
        return display + diagnostic


def truncate_text(content: str, max_chars: int) -> str:
    """Cut at a sentence boundary, or a word boundary when that keeps too little."""
    if len(content) <= max_chars:
        return content

    # Cut positions index into the original text so line breaks survive.
    cut = 0
    for match in _SENTENCE_END.finditer(content):
        if match.end() > max_chars:
            break
        cut = match.end()

    if cut < max_chars * 0.5:
        cut = 0
        for match in _WHITESPACE.finditer(content, 0, max_chars + 1):
            cut = match.start()
        if not content[:cut].strip():
            cut = max_chars
    return content[:cut].rstrip()


def _attachment_score(attachment: Attachment, intent: Intent) -> int:
    score = 0
    title = attachment.title.lower()
    if any(keyword in title for keyword in _INTENT_TITLE_KEYWORDS.get(intent, ())):
        score += 10
    if attachment.kind == "action":
        score += 5
    return score


def _complexity(message_type: MessageType, intent: Intent, conversation_length: int) -> Complexity:
    if message_type in ("greeting", "follow_up"):
        return "minimal"
    if message_type == "complex_request" or intent == "research":
        return "brief" if conversation_length < 2 else "detailed"
    return "brief"
