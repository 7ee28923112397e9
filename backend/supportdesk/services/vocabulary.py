"""
Keyword vocabularies and the term matcher shared by the topic filter and the
escalation detector.

By default terms match at the start of a word, so stems like ``escalat``
still match "escalate" and "escalation" while "sue" no longer fires inside
"issue". Terms listed as whole words must also end at a word boundary (an
optional plural ``s``/``es`` is allowed). A matcher built with
``substring=True`` matches terms anywhere, as the support-topic gate does.
"""
import re
from typing import FrozenSet, Iterable, List, Pattern, Tuple

ESCALATION_TERMS: Tuple[str, ...] = (
    "escalat", "human", "agent", "manager", "supervisor",
    "complaint", "urgent", "emergency", "not working", "broken",
    "speak to", "real person", "live agent", "can't help",
    "frustrated", "angry", "disappointed", "terrible", "awful",
    "cancel my account", "delete my account", "want to cancel",
    "legal action", "sue", "lawyer", "manager now",
)

NEGATIVE_SENTIMENT_TERMS: Tuple[str, ...] = (
    "frustrated", "angry", "disappointed", "terrible", "awful", "horrible", "worst",
)

URGENCY_TERMS: Tuple[str, ...] = ("urgent", "emergency", "immediately", "right now")

CANCELLATION_TERMS: Tuple[str, ...] = (
    "cancel", "delete account", "delete my account", "close my account",
)

SUPPORT_TOPIC_TERMS: Tuple[str, ...] = (
    "account", "login", "log in", "password", "sign up", "register", "profile", "settings",
    "order", "track", "shipping", "delivery", "return", "refund", "cancel",
    "payment", "billing", "invoice", "charge", "price", "cost", "fee",
    "error", "problem", "issue", "not working", "broken", "fix", "help",
    "support", "contact", "service", "policy", "terms", "faq",
    "product", "item", "feature", "how to", "tutorial", "guide",
)

WHOLE_WORD_TERMS: FrozenSet[str] = frozenset({
    "sue", "fee", "fix", "item", "cost", "faq", "terms", "human", "agent",
})


def normalise_text(text: str) -> str:
    """Lowercase and fold typographic apostrophes."""
    return (text or "").lower().replace("’", "'").replace("‘", "'")


class TermMatcher:
    """Case-insensitive matcher for a fixed vocabulary."""

    def __init__(
        self,
        terms: Iterable[str],
        whole_words: FrozenSet[str] = WHOLE_WORD_TERMS,
        substring: bool = False,
    ):
        self.terms: Tuple[str, ...] = tuple(dict.fromkeys(t.lower() for t in terms if t))
        self.substring = substring
        self._patterns: List[Tuple[str, Pattern[str]]] = [
            (term, self._compile(term, term in whole_words, substring)) for term in self.terms
        ]

    @staticmethod
    def _compile(term: str, whole_word: bool, substring: bool = False) -> Pattern[str]:
        if substring:
            return re.compile(re.escape(term))
        pattern = r"(?<!\w)" + re.escape(term)
        if whole_word:
            pattern += r"(?:e?s)?(?!\w)"
        return re.compile(pattern)

    def found_in(self, text: str) -> List[str]:
        """Distinct vocabulary terms present in ``text``."""
        lowered = normalise_text(text)
        return [term for term, pattern in self._patterns if pattern.search(lowered)]

    def any_in(self, text: str) -> bool:
        lowered = normalise_text(text)
        return any(pattern.search(lowered) for _, pattern in self._patterns)

    def count_in(self, text: str) -> int:
        return len(self.found_in(text))


__all__ = [
    'TermMatcher',
    'normalise_text',
    'ESCALATION_TERMS',
    'NEGATIVE_SENTIMENT_TERMS',
    'URGENCY_TERMS',
    'CANCELLATION_TERMS',
    'SUPPORT_TOPIC_TERMS',
    'WHOLE_WORD_TERMS',
]
