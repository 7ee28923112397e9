"""
In-memory document store implementation.
Suitable for development, tests and single-instance deployments.

Version: 1.0.0
"""
import asyncio
import logging
from collections import OrderedDict, defaultdict
from copy import deepcopy
from typing import Any, Dict, List, Optional

from .document_store import Document, DocumentStore, Query, SortSpec, sort_documents

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory implementation of DocumentStore.

    Features:
    - Async-safe operations using a single asyncio lock
    - Insertion-ordered collections
    - Deep copy in and out to prevent external mutations

    Limitations:
    - Data lost on restart
    - Not shared across multiple instances
    """

    def __init__(self):
        self.collections: Dict[str, "OrderedDict[str, Document]"] = defaultdict(OrderedDict)
        self.lock = asyncio.Lock()

        logger.info("InMemoryDocumentStore initialized")

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self.lock:
            doc = self.collections[collection].get(doc_id)
            return deepcopy(doc) if doc is not None else None

    async def insert(self, collection: str, doc_id: str, document: Document) -> bool:
        async with self.lock:
            docs = self.collections[collection]
            if doc_id in docs:
                logger.debug(f"Insert skipped, {collection}/{doc_id} exists")
                return False
            docs[doc_id] = deepcopy(document)
            logger.debug(f"Inserted {collection}/{doc_id}")
            return True

    async def update(
        self,
        collection: str,
        doc_id: str,
        set_fields: Optional[Document] = None,
        push: Optional[Dict[str, List[Any]]] = None,
    ) -> Optional[Document]:
        async with self.lock:
            doc = self.collections[collection].get(doc_id)
            if doc is None:
                return None

            for key, value in (set_fields or {}).items():
                doc[key] = deepcopy(value)

            for key, items in (push or {}).items():
                doc.setdefault(key, [])
                doc[key].extend(deepcopy(items))

            return deepcopy(doc)

    async def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        sort: Optional[SortSpec] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        async with self.lock:
            matched = [
                doc for doc in self.collections[collection].values()
                if query is None or query.matches(doc)
            ]
            matched = sort_documents(matched, sort)
            end = offset + limit if limit is not None else None
            return deepcopy(matched[offset:end])

    async def count(self, collection: str, query: Optional[Query] = None) -> int:
        async with self.lock:
            return sum(
                1 for doc in self.collections[collection].values()
                if query is None or query.matches(doc)
            )

    async def ping(self) -> bool:
        return True

    async def clear(self) -> None:
        """Drop every collection."""
        async with self.lock:
            self.collections.clear()


__all__ = ['InMemoryDocumentStore']
