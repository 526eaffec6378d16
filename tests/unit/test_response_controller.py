from datetime import datetime, timezone

from venture_agent.shaping.controller import (
    RESPONSE_BUDGETS,
    KeywordMessageClassifier,
    ResponseController,
    truncate_text,
)
from venture_agent.types import Attachment, SessionMessage


def _history(*contents: str) -> list[SessionMessage]:
    return [
        SessionMessage(
            message_id=f"m{i}",
            role="user",
            content=content,
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        for i, content in enumerate(contents)
    ]


def test_classifier_message_types() -> None:
    classifier = KeywordMessageClassifier()
    history = _history("I want to learn about funding options for my company")

    assert classifier.analyze("Hello!", []).message_type == "greeting"
    assert classifier.analyze("Tell me about Meta3 please", history).message_type == "about"
    assert classifier.analyze("Can you do a competitive landscape review?", history).message_type == "complex_request"
    assert classifier.analyze("Could you elaborate on that", history).message_type == "follow_up"
    assert classifier.analyze("Which funding round fits me", history).message_type == "follow_up"
    assert classifier.analyze("Where are your offices located", history).message_type == "simple_question"


def test_classifier_matches_whole_words_only() -> None:
    classifier = KeywordMessageClassifier()
    history = _history("first message to skip the short greeting rule")

    # "this" contains "hi" and "behind" contains "hi"; neither is a greeting.
    analysis = classifier.analyze("Where is this office behind the station", history)

    assert analysis.message_type == "simple_question"
    assert analysis.intent == "information"


def test_classifier_intent_and_complexity() -> None:
    classifier = KeywordMessageClassifier()
    history = _history("one", "two")

    analysis = classifier.analyze("We need a research report on market sizing strategy", history)

    assert analysis.intent == "research"
    assert analysis.complexity == "detailed"
    assert classifier.analyze("How do I apply", history).intent == "action"


def test_shape_truncates_and_appends_continuation_prompt() -> None:
    controller = ResponseController()
    analysis = controller.analyze("Hello there")
    content = "Welcome to Meta3. " * 20

    shaped = controller.shape(content, analysis)

    assert shaped.truncated
    body, _, prompt = shaped.content.rpartition("\n\n")
    assert len(body) <= RESPONSE_BUDGETS["greeting"].max_chars
    assert body.endswith(".")
    assert prompt == controller.config.continuation_prompt
    assert [action.value for action in shaped.quick_actions] == ["about", "investment", "apply"]


def test_short_content_untouched() -> None:
    controller = ResponseController()
    analysis = controller.analyze("Where are your offices located", _history("earlier"))

    shaped = controller.shape("In Miami.", analysis)

    assert shaped.content == "In Miami."
    assert not shaped.truncated


def test_attachment_ceiling_keeps_diagnostics_and_prefers_intent() -> None:
    controller = ResponseController()
    analysis = controller.analyze("How do I apply for investment funding", _history("earlier"))
    attachments = [
        Attachment(kind="document", title="Holiday policy"),
        Attachment(kind="document", title="Office map"),
        Attachment(kind="document", title="Investment criteria"),
        Attachment(kind="llm_metadata", title="Generation details"),
    ]

    shaped = controller.shape("Short answer.", analysis, attachments)

    assert analysis.message_type == "simple_question"
    titles = [item.title for item in shaped.attachments]
    assert titles[0] == "Investment criteria"
    assert len([item for item in shaped.attachments if not item.diagnostic]) == 2
    assert titles[-1] == "Generation details"


def test_truncate_text_word_boundary_fallback() -> None:
    text = "word " * 100

    cut = truncate_text(text, 42)

    assert len(cut) <= 42
    assert not cut.endswith(" ")
    assert set(cut.split()) == {"word"}


def test_truncate_text_keeps_paragraph_breaks() -> None:
    text = (
        "First paragraph ends here.\n\n"
        "Second paragraph ends here.\n\n"
        "Third paragraph is much longer and will not fit in the budget."
    )

    cut = truncate_text(text, 60)

    assert cut == "First paragraph ends here.\n\nSecond paragraph ends here."


def test_truncate_text_keeps_fenced_block_layout() -> None:
    text = "```\nvaluation: 4500000\nstage: seed\n```\nfollow up with the team about next steps"

    cut = truncate_text(text, 50)

    assert len(cut) <= 50
    assert text.startswith(cut)
    assert cut.startswith("```\nvaluation: 4500000\nstage: seed\n```")
