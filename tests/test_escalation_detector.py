"""
Tests for escalation detection and priority assignment.
"""
import pytest

from supportdesk.models import Priority
from supportdesk.services import EscalationDetector

NEUTRAL_REPLY = "Thanks for reaching out. Let me look into that for you."


@pytest.fixture
def detector() -> EscalationDetector:
    return EscalationDetector()


# ===========================
# Signals
# ===========================

def test_manager_right_now_escalates_with_high_priority(detector):
    result = detector.evaluate(NEUTRAL_REPLY, "I want to speak to a manager right now")

    assert result.escalate is True
    assert result.priority == Priority.HIGH
    assert "keyword" in result.signals
    assert "urgency" in result.signals
    assert "manager" in result.keywords


def test_neutral_message_does_not_escalate(detector):
    result = detector.evaluate(NEUTRAL_REPLY, "Where can I see my invoice?")

    assert result.escalate is False
    assert result.signals == []
    assert result.priority == Priority.MEDIUM


def test_keyword_in_assistant_reply_escalates(detector):
    reply = "I'm sorry, I can't help with that. Let me connect you to a human."

    assert detector.should_escalate(reply, "My invoice is wrong") is True


@pytest.mark.parametrize("message", [
    "This is urgent",
    "It's an emergency",
    "Please fix it immediately",
    "I need this sorted right now",
])
def test_urgency_phrases_escalate(detector, message):
    result = detector.evaluate(NEUTRAL_REPLY, message)

    assert result.escalate is True
    assert result.urgency_terms


def test_two_negative_terms_trigger_sentiment(detector):
    result = detector.evaluate(NEUTRAL_REPLY, "The delivery was horrible, the worst ever")

    assert result.escalate is True
    assert result.signals == ["sentiment"]


def test_single_negative_term_is_not_enough(detector):
    result = detector.evaluate(NEUTRAL_REPLY, "The packaging was horrible")

    assert result.escalate is False


def test_negative_terms_in_reply_do_not_count_as_sentiment(detector):
    reply = "Sorry it was horrible, the worst experience."

    assert detector.should_escalate(reply, "My parcel arrived late") is False


def test_terms_match_at_word_start_only(detector):
    # "sue" must not fire inside "issue"
    assert detector.should_escalate(NEUTRAL_REPLY, "I have an issue with my invoice") is False
    assert detector.should_escalate(NEUTRAL_REPLY, "I will sue your company") is True


def test_stem_terms_match_word_variants(detector):
    assert detector.should_escalate(NEUTRAL_REPLY, "Please escalate my ticket") is True
    assert detector.should_escalate(NEUTRAL_REPLY, "I need an escalation") is True


def test_matching_is_case_insensitive(detector):
    assert detector.should_escalate(NEUTRAL_REPLY, "GET ME A SUPERVISOR") is True


def test_extra_keywords_extend_vocabulary():
    detector = EscalationDetector(extra_keywords=["chargeback"])

    assert detector.should_escalate(NEUTRAL_REPLY, "I'm filing a chargeback") is True


# ===========================
# Priority
# ===========================

@pytest.mark.parametrize("message", [
    "I want to cancel my subscription",
    "Please delete my account",
    "This is an emergency",
])
def test_high_priority_language(detector, message):
    assert detector.priority_for(message) == Priority.HIGH


def test_default_priority_is_medium(detector):
    assert detector.priority_for("I'm frustrated and angry") == Priority.MEDIUM


def test_detector_never_assigns_low_or_urgent(detector):
    messages = [
        "hello",
        "urgent urgent urgent emergency",
        "cancel everything right now, I'm furious and angry and frustrated",
    ]
    for message in messages:
        assert detector.priority_for(message) in (Priority.MEDIUM, Priority.HIGH)
