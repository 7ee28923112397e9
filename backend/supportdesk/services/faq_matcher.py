"""
FAQ matching over an in-memory catalog.

Two passes, first hit wins:
1. direct: the whole normalised query appears in a question or answer, or
   equals one of the entry's tags
2. keyword: up to five query words longer than three characters; any of
   them appearing in a question or answer, or among the tags
"""
import logging
import string
from typing import Iterable, List, Optional, Tuple

from ..models import FAQEntry

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 5


class _IndexedEntry:
    __slots__ = ("entry", "question", "answer", "tags")

    def __init__(self, entry: FAQEntry):
        self.entry = entry
        self.question = entry.question.lower()
        self.answer = entry.answer.lower()
        self.tags = frozenset(tag.lower() for tag in entry.tags)


def extract_keywords(query: str) -> List[str]:
    """
    Keywords used by the fallback pass.

    Args:
        query: Normalised query

    Returns:
        At most five distinct words longer than three characters, in order
    """
    keywords: List[str] = []
    for word in query.split():
        word = word.strip(string.punctuation)
        if len(word) >= MIN_KEYWORD_LENGTH and word not in keywords:
            keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


class FAQMatcher:
    """
    Deterministic FAQ lookup.

    The catalog is a snapshot; ``reload`` swaps it in one assignment so a
    concurrent ``match`` always sees either the old or the new catalog.
    """

    def __init__(self, entries: Iterable[FAQEntry] = ()):
        self._catalog: Tuple[_IndexedEntry, ...] = ()
        self.reload(entries)

    def reload(self, entries: Iterable[FAQEntry]) -> None:
        self._catalog = tuple(_IndexedEntry(e) for e in entries)
        logger.info(f"FAQ catalog loaded ({len(self._catalog)} entries)")

    @property
    def entries(self) -> List[FAQEntry]:
        return [item.entry for item in self._catalog]

    def __len__(self) -> int:
        return len(self._catalog)

    def match(self, query: str) -> Optional[FAQEntry]:
        """
        Find the FAQ entry answering ``query``.

        Args:
            query: Raw user message

        Returns:
            First matching entry or None
        """
        normalised = (query or "").lower().strip()
        if not normalised:
            return None

        catalog = self._catalog

        for item in catalog:
            if normalised in item.question or normalised in item.answer or normalised in item.tags:
                logger.debug(f"FAQ direct match: {item.entry.question}")
                return item.entry

        keywords = extract_keywords(normalised)
        if not keywords:
            return None

        keyword_set = set(keywords)
        for item in catalog:
            if (
                any(kw in item.question or kw in item.answer for kw in keywords)
                or keyword_set & item.tags
            ):
                logger.debug(f"FAQ keyword match: {item.entry.question} (keywords={keywords})")
                return item.entry

        logger.debug("No FAQ match")
        return None


__all__ = ['FAQMatcher', 'extract_keywords']
