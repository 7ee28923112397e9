"""
Escalation detection.

Decides whether a conversation turn needs a human and at what priority.
Pure functions of the assistant reply and the user message; the detector
holds only its compiled vocabularies.

Signals (OR-ed):
- keyword: escalation-intent vocabulary in either text
- sentiment: two or more distinct negative terms in the user message
- urgency: an urgency phrase in the user message

Priority is medium unless the user message carries urgency or account
cancellation language, in which case it is high. Low and urgent are only
set manually by a handler.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..models import Priority
from .vocabulary import (
    CANCELLATION_TERMS,
    ESCALATION_TERMS,
    NEGATIVE_SENTIMENT_TERMS,
    URGENCY_TERMS,
    TermMatcher,
)

logger = logging.getLogger(__name__)

NEGATIVE_SENTIMENT_THRESHOLD = 2


@dataclass
class DetectionResult:
    """Outcome of evaluating one turn."""
    escalate: bool
    priority: Priority
    keywords: List[str] = field(default_factory=list)
    negative_terms: List[str] = field(default_factory=list)
    urgency_terms: List[str] = field(default_factory=list)

    @property
    def signals(self) -> List[str]:
        fired = []
        if self.keywords:
            fired.append("keyword")
        if len(self.negative_terms) >= NEGATIVE_SENTIMENT_THRESHOLD:
            fired.append("sentiment")
        if self.urgency_terms:
            fired.append("urgency")
        return fired


class EscalationDetector:
    """
    Keyword and threshold escalation rules.

    Example:
        detector = EscalationDetector()
        detector.should_escalate(reply, "I want to speak to a manager right now")
        # True
        detector.priority_for("I want to speak to a manager right now")
        # Priority.HIGH
    """

    def __init__(self, extra_keywords: Optional[Iterable[str]] = None):
        """
        Args:
            extra_keywords: Additional escalation-intent terms
        """
        self.keyword_matcher = TermMatcher(list(ESCALATION_TERMS) + list(extra_keywords or []))
        self.negative_matcher = TermMatcher(NEGATIVE_SENTIMENT_TERMS)
        self.urgency_matcher = TermMatcher(URGENCY_TERMS)
        self.cancellation_matcher = TermMatcher(CANCELLATION_TERMS)

    def evaluate(self, assistant_reply: str, user_message: str) -> DetectionResult:
        """
        Evaluate all signals for one turn.

        Args:
            assistant_reply: Reply drafted by the completion provider
            user_message: The user's message

        Returns:
            DetectionResult with the decision, priority and matched terms
        """
        keywords = self.keyword_matcher.found_in(assistant_reply)
        for term in self.keyword_matcher.found_in(user_message):
            if term not in keywords:
                keywords.append(term)

        negative_terms = self.negative_matcher.found_in(user_message)
        urgency_terms = self.urgency_matcher.found_in(user_message)

        escalate = (
            bool(keywords)
            or len(negative_terms) >= NEGATIVE_SENTIMENT_THRESHOLD
            or bool(urgency_terms)
        )

        result = DetectionResult(
            escalate=escalate,
            priority=self.priority_for(user_message),
            keywords=keywords,
            negative_terms=negative_terms,
            urgency_terms=urgency_terms,
        )

        logger.debug(
            f"Escalation check: escalate={escalate}, signals={result.signals}, "
            f"keywords={keywords}, negative={negative_terms}, urgency={urgency_terms}"
        )
        return result

    def should_escalate(self, assistant_reply: str, user_message: str) -> bool:
        return self.evaluate(assistant_reply, user_message).escalate

    def priority_for(self, user_message: str) -> Priority:
        if self.urgency_matcher.any_in(user_message) or self.cancellation_matcher.any_in(user_message):
            return Priority.HIGH
        return Priority.MEDIUM


__all__ = ['EscalationDetector', 'DetectionResult', 'NEGATIVE_SENTIMENT_THRESHOLD']
