"""
Persistence package.
Provides the document store abstraction, its backends and typed repositories.

Version: 1.0.0
"""
from .document_store import DocumentStore, Document, Query, StoreError
from .in_memory_store import InMemoryDocumentStore
from .redis_store import RedisDocumentStore
from .repositories import (
    Repositories,
    SessionRepository,
    EscalationRepository,
    UserRepository,
    FAQRepository,
)
from .locks import SessionLockRegistry


def create_document_store(store_type: str = "in_memory", **kwargs) -> DocumentStore:
    """
    Factory function to create a document store.

    Args:
        store_type: Type of store ('in_memory' or 'redis')
        **kwargs: Store-specific configuration

    Returns:
        DocumentStore instance

    Examples:
        store = create_document_store('in_memory')

        store = create_document_store(
            'redis',
            redis_url='redis://localhost:6379/0',
            key_prefix='supportdesk:'
        )
    """
    if store_type == "in_memory":
        return InMemoryDocumentStore()

    elif store_type == "redis":
        return RedisDocumentStore(**kwargs)

    else:
        raise ValueError(f"Unknown store type: {store_type}")


__all__ = [
    # Core
    'DocumentStore',
    'Document',
    'Query',
    'StoreError',

    # Implementations
    'InMemoryDocumentStore',
    'RedisDocumentStore',

    # Repositories
    'Repositories',
    'SessionRepository',
    'EscalationRepository',
    'UserRepository',
    'FAQRepository',

    # Locking
    'SessionLockRegistry',

    # Factory
    'create_document_store',
]
