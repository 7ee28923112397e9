"""
Tests for the support-topic gate.
"""
import pytest

from supportdesk.services import TopicFilter
from supportdesk.services.vocabulary import TermMatcher, normalise_text


@pytest.fixture
def topic_filter() -> TopicFilter:
    return TopicFilter()


@pytest.mark.parametrize("message", [
    "How do I reset my password?",
    "Where is my order?",
    "I was charged twice on my invoice",
    "The app shows an error when I log in",
    "What is your return policy?",
    "I was overcharged twice this month",
    "My preorder never arrived",
    "Your checkout keeps rejecting my card, please help",
])
def test_support_messages_pass(topic_filter, message):
    assert topic_filter.is_support_query(message) is True


@pytest.mark.parametrize("message", [
    "what's 2+2",
    "Tell me a joke",
    "Write a poem about the sea",
])
def test_off_topic_messages_are_rejected(topic_filter, message):
    assert topic_filter.is_support_query(message) is False


def test_requests_for_a_human_pass_the_gate(topic_filter):
    assert topic_filter.is_support_query("I want to speak to a manager right now") is True


def test_whole_word_terms_need_word_boundaries():
    matcher = TermMatcher(["fee", "item"])

    assert matcher.any_in("Is there a fee?") is True
    assert matcher.any_in("Two items in my basket") is True
    assert matcher.any_in("I'd like some coffee") is False
    assert matcher.found_in("fees and items") == ["fee", "item"]


def test_curly_apostrophes_are_folded():
    assert normalise_text("I CAN’T log in") == "i can't log in"
    assert TermMatcher(["can't help"]).any_in("You can’t help me")


def test_substring_matcher_matches_inside_words():
    matcher = TermMatcher(["charge", "order", "fee"], substring=True)

    assert matcher.found_in("I was overcharged on my preorder") == ["charge", "order"]
    assert matcher.any_in("I'd like some coffee") is True
    assert TermMatcher(["charge"]).any_in("I was overcharged") is False
