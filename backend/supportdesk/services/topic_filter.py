"""
Support-topic gate.

Keeps the assistant scoped to customer-support conversations: messages that
mention neither a support topic nor a request for human help receive a fixed
redirect instead of a completion. Support-topic terms match anywhere in the
text, so "overcharged" and "preorder" count as billing and order questions.
"""
from .vocabulary import ESCALATION_TERMS, SUPPORT_TOPIC_TERMS, TermMatcher

REDIRECT_MESSAGE = (
    "I'm here to help with customer support questions like account issues, "
    "orders, billing, or technical support. How can I assist you with our "
    "services today?"
)


class TopicFilter:
    def __init__(self):
        self.topic_matcher = TermMatcher(SUPPORT_TOPIC_TERMS, substring=True)
        self.escalation_matcher = TermMatcher(ESCALATION_TERMS)

    def is_support_query(self, message: str) -> bool:
        return self.topic_matcher.any_in(message) or self.escalation_matcher.any_in(message)


__all__ = ['TopicFilter', 'REDIRECT_MESSAGE']
