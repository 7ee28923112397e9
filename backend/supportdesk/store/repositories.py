"""
Typed repositories over the document store.

Repositories map documents to domain models and convert backend failures
into ``PersistenceFailure``. Transcript and note appends go through the
store's atomic push so concurrent writers never drop entries.
"""
import functools
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from ..exceptions import PersistenceFailure
from ..models import (
    EscalationRecord,
    FAQEntry,
    Message,
    PRIORITY_RANK,
    Note,
    Session,
    User,
    utcnow,
)
from .document_store import DocumentStore, Query, StoreError

logger = logging.getLogger(__name__)

SESSIONS = "sessions"
ESCALATIONS = "escalations"
USERS = "users"
FAQS = "faqs"


def _wrap_store_errors(func):
    """Re-raise StoreError as PersistenceFailure."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except StoreError as e:
            logger.error(f"Store operation {func.__qualname__} failed: {e}", exc_info=True)
            raise PersistenceFailure("Storage backend unavailable", cause=e) from e
    return wrapper


class _Repository:
    collection: str = ""

    def __init__(self, store: DocumentStore):
        self.store = store


class SessionRepository(_Repository):
    collection = SESSIONS

    @_wrap_store_errors
    async def get(self, session_id: str) -> Optional[Session]:
        doc = await self.store.get(self.collection, session_id)
        return Session.from_document(doc) if doc else None

    @_wrap_store_errors
    async def insert(self, session: Session) -> bool:
        return await self.store.insert(self.collection, session.session_id, session.to_document())

    @_wrap_store_errors
    async def append_messages(
        self,
        session_id: str,
        messages: List[Message],
        **fields: Any,
    ) -> Optional[Session]:
        """
        Append messages and set fields in one atomic update.

        Args:
            session_id: Session token
            messages: Messages to append in order
            **fields: Additional top-level fields (status, user_id, ...)
        """
        set_fields = _serialise(fields)
        set_fields["updated_at"] = utcnow().isoformat()
        doc = await self.store.update(
            self.collection,
            session_id,
            set_fields=set_fields,
            push={"messages": [m.to_document() for m in messages]} if messages else None,
        )
        return Session.from_document(doc) if doc else None

    async def set_fields(self, session_id: str, **fields: Any) -> Optional[Session]:
        return await self.append_messages(session_id, [], **fields)

    @_wrap_store_errors
    async def list_for_user(self, user_id: str) -> List[Session]:
        docs = await self.store.find(
            self.collection,
            Query(equals={"user_id": user_id}),
            sort=[("updated_at", True)],
        )
        return [Session.from_document(d) for d in docs]

    @_wrap_store_errors
    async def count(self, query: Optional[Query] = None) -> int:
        return await self.store.count(self.collection, query)


class EscalationRepository(_Repository):
    collection = ESCALATIONS

    @_wrap_store_errors
    async def get(self, escalation_id: str) -> Optional[EscalationRecord]:
        doc = await self.store.get(self.collection, escalation_id)
        return EscalationRecord.from_document(doc) if doc else None

    @_wrap_store_errors
    async def find_for_session(self, session_id: str) -> Optional[EscalationRecord]:
        """Most recent record for a session token, whatever its status."""
        doc = await self.store.find_one(
            self.collection,
            Query(equals={"session_id": session_id}),
            sort=[("created_at", True)],
        )
        return EscalationRecord.from_document(doc) if doc else None

    @_wrap_store_errors
    async def insert(self, record: EscalationRecord) -> bool:
        return await self.store.insert(self.collection, record.id, record.to_document())

    @_wrap_store_errors
    async def update(
        self,
        escalation_id: str,
        notes: Optional[List[Note]] = None,
        **fields: Any,
    ) -> Optional[EscalationRecord]:
        """
        Atomically set fields and append notes.

        Returns:
            Updated record, or None if it does not exist
        """
        set_fields = _serialise(fields)
        if "priority" in set_fields:
            set_fields["priority_rank"] = PRIORITY_RANK[set_fields["priority"]]
        set_fields["updated_at"] = utcnow().isoformat()
        doc = await self.store.update(
            self.collection,
            escalation_id,
            set_fields=set_fields,
            push={"notes": [n.to_document() for n in notes]} if notes else None,
        )
        return EscalationRecord.from_document(doc) if doc else None

    @_wrap_store_errors
    async def list(
        self,
        query: Optional[Query] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[EscalationRecord]:
        """Records ordered by priority (urgent first), then newest first."""
        docs = await self.store.find(
            self.collection,
            query,
            sort=[("priority_rank", True), ("created_at", True)],
            offset=offset,
            limit=limit,
        )
        return [EscalationRecord.from_document(d) for d in docs]

    @_wrap_store_errors
    async def count(self, query: Optional[Query] = None) -> int:
        return await self.store.count(self.collection, query)


class UserRepository(_Repository):
    collection = USERS

    @_wrap_store_errors
    async def get(self, user_id: str) -> Optional[User]:
        doc = await self.store.get(self.collection, user_id)
        return User.from_document(doc) if doc else None

    @_wrap_store_errors
    async def get_by_email(self, email: str) -> Optional[User]:
        doc = await self.store.find_one(
            self.collection,
            Query(equals={"email": email.strip().lower()}),
        )
        return User.from_document(doc) if doc else None

    @_wrap_store_errors
    async def insert(self, user: User) -> bool:
        return await self.store.insert(self.collection, user.id, user.to_document())

    @_wrap_store_errors
    async def update(self, user_id: str, **fields: Any) -> Optional[User]:
        set_fields = _serialise(fields)
        set_fields["updated_at"] = utcnow().isoformat()
        doc = await self.store.update(self.collection, user_id, set_fields=set_fields)
        return User.from_document(doc) if doc else None

    @_wrap_store_errors
    async def list(self) -> List[User]:
        docs = await self.store.find(self.collection, sort=[("created_at", True)])
        return [User.from_document(d) for d in docs]

    @_wrap_store_errors
    async def count(self, query: Optional[Query] = None) -> int:
        return await self.store.count(self.collection, query)


class FAQRepository(_Repository):
    collection = FAQS

    @_wrap_store_errors
    async def list(self) -> List[FAQEntry]:
        docs = await self.store.find(self.collection, sort=[("created_at", False)])
        return [FAQEntry.from_document(d) for d in docs]

    @_wrap_store_errors
    async def insert(self, entry: FAQEntry) -> bool:
        return await self.store.insert(self.collection, entry.id, entry.to_document())

    @_wrap_store_errors
    async def count(self) -> int:
        return await self.store.count(self.collection)


def _serialise(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert enum and datetime field values to their document form."""
    result = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif hasattr(value, "isoformat"):
            value = value.isoformat()
        result[key] = value
    return result


class Repositories:
    """Bundle of all repositories sharing one store."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.sessions = SessionRepository(store)
        self.escalations = EscalationRepository(store)
        self.users = UserRepository(store)
        self.faqs = FAQRepository(store)


__all__ = [
    'Repositories',
    'SessionRepository',
    'EscalationRepository',
    'UserRepository',
    'FAQRepository',
    'SESSIONS',
    'ESCALATIONS',
    'USERS',
    'FAQS',
]
