"""
Abstract document store interface.
Defines the contract for persistence of sessions, escalations, users and FAQs.

Version: 1.0.0
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

Document = Dict[str, Any]
SortSpec = Sequence[Tuple[str, bool]]


@dataclass
class Query:
    """
    Document filter.

    Attributes:
        equals: field -> value, all must match
        one_of: field -> allowed values
        created_since: ISO-8601 lower bound (inclusive) on ``created_at``
    """
    equals: Dict[str, Any] = field(default_factory=dict)
    one_of: Dict[str, Sequence[Any]] = field(default_factory=dict)
    created_since: Optional[str] = None

    def matches(self, doc: Document) -> bool:
        for key, value in self.equals.items():
            if doc.get(key) != value:
                return False
        for key, values in self.one_of.items():
            if doc.get(key) not in values:
                return False
        if self.created_since is not None:
            created = doc.get("created_at")
            if created is None or created < self.created_since:
                return False
        return True


def sort_documents(docs: List[Document], sort: Optional[SortSpec]) -> List[Document]:
    """
    Stable multi-key sort.

    Args:
        docs: Documents to sort
        sort: (field, descending) pairs, most significant first
    """
    if not sort:
        return docs
    for key, descending in reversed(list(sort)):
        docs = sorted(
            docs,
            key=lambda d: (d.get(key) is not None, d.get(key) if d.get(key) is not None else 0),
            reverse=descending,
        )
    return docs


class StoreError(Exception):
    """Raised by store implementations when the backend fails."""


class DocumentStore(ABC):
    """
    Abstract base class for document storage.

    Documents live in named collections and are keyed by an id field.
    Implementations must make each single-document ``update`` atomic: the
    ``set_fields`` and ``push`` parts are applied together against the
    current stored state, so concurrent appends are never lost.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """
        Get a document by id.

        Returns:
            Copy of the document or None if not found
        """
        pass

    @abstractmethod
    async def insert(self, collection: str, doc_id: str, document: Document) -> bool:
        """
        Insert a new document.

        Returns:
            True if inserted, False if the id already exists
        """
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        set_fields: Optional[Document] = None,
        push: Optional[Dict[str, List[Any]]] = None,
    ) -> Optional[Document]:
        """
        Atomically update a document.

        Args:
            collection: Collection name
            doc_id: Document id
            set_fields: Top-level fields to overwrite
            push: Array field -> items to append

        Returns:
            The updated document, or None if not found
        """
        pass

    @abstractmethod
    async def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        sort: Optional[SortSpec] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """
        Find documents matching a query.

        Args:
            collection: Collection name
            query: Filter (all documents when None)
            sort: (field, descending) pairs
            offset: Number of matches to skip
            limit: Maximum number of documents to return
        """
        pass

    @abstractmethod
    async def count(self, collection: str, query: Optional[Query] = None) -> int:
        pass

    async def find_one(
        self,
        collection: str,
        query: Query,
        sort: Optional[SortSpec] = None,
    ) -> Optional[Document]:
        docs = await self.find(collection, query, sort=sort, limit=1)
        return docs[0] if docs else None

    @abstractmethod
    async def ping(self) -> bool:
        """Check backend connectivity."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None


__all__ = ['DocumentStore', 'Document', 'Query', 'SortSpec', 'StoreError', 'sort_documents']
