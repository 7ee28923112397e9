"""
Admin action handler.
Applies handler actions to escalation records and weaves handler replies
into the customer's transcript.

Callers are expected to hold the admin or support_agent role; the API layer
enforces that with ``require_handler``.

Version: 1.0.0
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidRequest, NotFound
from ..models import (
    EscalationRecord,
    EscalationStatus,
    Message,
    MessageSource,
    Priority,
    Session,
    User,
)
from ..store import Query, Repositories
from ..utils.telemetry import track_admin_action
from .escalation_workflow import EscalationWorkflow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
ALL = "all"


@dataclass
class EscalationPage:
    records: List[EscalationRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass
class EscalationDetail:
    record: EscalationRecord
    conversation: List[Message] = field(default_factory=list)
    customer: Optional[User] = None
    assigned_handler: Optional[User] = None
    note_authors: Dict[str, User] = field(default_factory=dict)


@dataclass
class AdminMessageResult:
    session: Session
    message: Message
    escalation: Optional[EscalationRecord] = None


def _require_text(text: Optional[str], what: str) -> str:
    if text is None or not text.strip():
        raise InvalidRequest(f"{what} is required")
    return text.strip()


def _parse_filter(value: Optional[str], enum_cls, name: str) -> Optional[str]:
    if value is None or value == "" or value == ALL:
        return None
    try:
        return enum_cls(value).value
    except ValueError as e:
        raise InvalidRequest(f"Unknown {name}: {value}") from e


class AdminActionHandler:
    """
    Handler-side operations on escalations.

    Status changes are delegated to EscalationWorkflow so the session status
    always follows the record status.
    """

    def __init__(self, repos: Repositories, workflow: EscalationWorkflow):
        self.repos = repos
        self.workflow = workflow

    async def _get_record(self, escalation_id: str) -> EscalationRecord:
        record = await self.repos.escalations.get(escalation_id)
        if record is None:
            raise NotFound(f"Escalation {escalation_id} not found")
        return record

    async def assign(self, escalation_id: str, handler_id: str, actor: User) -> EscalationRecord:
        """
        Assign an escalation to a handler.

        Raises:
            NotFound: Missing escalation, or handler missing or not
                admin/support_agent
        """
        record = await self._get_record(escalation_id)

        if not handler_id:
            raise InvalidRequest("Handler ID is required")
        handler = await self.repos.users.get(handler_id)
        if handler is None or not handler.is_handler:
            raise NotFound(f"Handler {handler_id} not found")

        updated = await self.workflow.assign(record, handler, actor)
        track_admin_action("assign")
        return updated

    async def send_admin_message(self, session_id: str, text: str, actor: User) -> AdminMessageResult:
        """
        Post a handler reply into the session transcript.

        Raises:
            InvalidRequest: Blank text
            NotFound: Unknown session
        """
        text = _require_text(text, "Message")

        if not await self.repos.sessions.get(session_id):
            raise NotFound(f"Session {session_id} not found")

        message = Message.assistant(f"[Admin {actor.name}]: {text}", source=MessageSource.ADMIN)
        session = await self.repos.sessions.append_messages(session_id, [message])
        if session is None:
            raise NotFound(f"Session {session_id} not found")

        record = await self.repos.escalations.find_for_session(session_id)
        if record is not None:
            record = await self.workflow.record_admin_message(record, text, actor)
            session = await self.repos.sessions.get(session_id) or session

        logger.info(
            f"Handler {actor.id} replied in session {session_id}",
            extra={"session_id": session_id},
        )
        track_admin_action("message")
        return AdminMessageResult(session=session, message=message, escalation=record)

    async def resolve(self, escalation_id: str, notes: Optional[str], actor: User) -> EscalationRecord:
        """
        Resolve an escalation and its session.

        Raises:
            NotFound: Missing escalation
        """
        record = await self._get_record(escalation_id)
        updated = await self.workflow.resolve(record, notes, actor)
        track_admin_action("resolve")
        return updated

    async def add_note(self, escalation_id: str, text: str, actor: User) -> EscalationRecord:
        text = _require_text(text, "Note")
        record = await self._get_record(escalation_id)
        updated = await self.workflow.add_note(record, text, actor)
        track_admin_action("note")
        return updated

    async def update_priority(self, escalation_id: str, priority: str, actor: User) -> EscalationRecord:
        try:
            new_priority = Priority(priority)
        except ValueError as e:
            raise InvalidRequest(f"Unknown priority: {priority}") from e

        record = await self._get_record(escalation_id)
        updated = await self.workflow.set_priority(record, new_priority, actor)
        track_admin_action("priority")
        return updated

    async def list_escalations(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> EscalationPage:
        """
        Page through escalations, urgent first then newest first.

        Args:
            status: Status filter, ``all`` or None for every status
            priority: Priority filter, ``all`` or None for every priority
            page: 1-based page number
            limit: Page size (1-100)
        """
        if page < 1:
            raise InvalidRequest("page must be at least 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidRequest(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        equals: Dict[str, Any] = {}
        status_value = _parse_filter(status, EscalationStatus, "status")
        priority_value = _parse_filter(priority, Priority, "priority")
        if status_value:
            equals["status"] = status_value
        if priority_value:
            equals["priority"] = priority_value
        query = Query(equals=equals)

        total = await self.repos.escalations.count(query)
        records = await self.repos.escalations.list(
            query,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return EscalationPage(records=records, page=page, limit=limit, total=total)

    async def get_escalation_detail(self, escalation_id: str) -> EscalationDetail:
        record = await self._get_record(escalation_id)
        session = await self.repos.sessions.get(record.session_id)

        detail = EscalationDetail(
            record=record,
            conversation=list(session.messages) if session else [],
        )
        if record.customer_id:
            detail.customer = await self.repos.users.get(record.customer_id)
        if record.assigned_handler_id:
            detail.assigned_handler = await self.repos.users.get(record.assigned_handler_id)

        for author_id in {n.handler_id for n in record.notes if n.handler_id}:
            author = await self.repos.users.get(author_id)
            if author is not None:
                detail.note_authors[author_id] = author

        return detail


__all__ = [
    'AdminActionHandler',
    'EscalationPage',
    'EscalationDetail',
    'AdminMessageResult',
    'DEFAULT_PAGE_SIZE',
    'MAX_PAGE_SIZE',
]
