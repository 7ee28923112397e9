"""
Escalation workflow.

Every status change of an escalation record, and the session status it
implies, goes through this module. The session status is derived from the
record status:

    pending, in_progress  -> session escalated
    resolved, closed      -> session resolved

Version: 1.0.0
"""
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from ..exceptions import InvalidTransition, NotFound
from ..models import (
    EscalationRecord,
    EscalationStatus,
    Message,
    Note,
    Priority,
    SessionStatus,
    User,
    truncate,
    utcnow,
)
from ..store import Repositories

logger = logging.getLogger(__name__)

PENDING = EscalationStatus.PENDING.value
IN_PROGRESS = EscalationStatus.IN_PROGRESS.value
RESOLVED = EscalationStatus.RESOLVED.value
CLOSED = EscalationStatus.CLOSED.value

VALID_TRANSITIONS: Dict[str, List[str]] = {
    PENDING: [PENDING, IN_PROGRESS, RESOLVED, CLOSED],
    IN_PROGRESS: [PENDING, IN_PROGRESS, RESOLVED, CLOSED],
    RESOLVED: [PENDING, IN_PROGRESS, RESOLVED],
    CLOSED: [PENDING, IN_PROGRESS, CLOSED],
}

SESSION_STATUS_FOR: Dict[str, str] = {
    PENDING: SessionStatus.ESCALATED.value,
    IN_PROGRESS: SessionStatus.ESCALATED.value,
    RESOLVED: SessionStatus.RESOLVED.value,
    CLOSED: SessionStatus.RESOLVED.value,
}

REASON_PREFIX = "AI detected need for human intervention - "
REESCALATION_PREFIX = "Re-escalated: "
DEFAULT_RESOLUTION_NOTE = "Issue resolved by admin."
REASON_EXCERPT_LENGTH = 100
NOTE_EXCERPT_LENGTH = 100


def escalation_notice(priority: str, summary: Optional[str] = None, reason: Optional[str] = None) -> str:
    """System transcript message announcing an escalation."""
    detail = f"Summary: {summary}" if summary is not None else f"Reason: {reason}"
    return f"🚨 CONVERSATION ESCALATED TO HUMAN AGENT. Priority: {priority.upper()}. {detail}"


def escalation_entries(priority: str, reason: str, summary: Optional[str]) -> Tuple[Message, Note]:
    """
    Transcript notice and system note logging an escalation.

    With a summary, both carry it. Without one, they carry the raw reason.
    """
    notice = Message.system(escalation_notice(priority, summary=summary, reason=reason))
    if summary is not None:
        note_text = f"Automatically escalated. AI Summary: {summary}"
    else:
        note_text = f"Automatically escalated. Summary unavailable. Reason: {reason}"
    return notice, Note(text=note_text)


def validate_transition(current: str, target: str) -> None:
    """
    Raises:
        InvalidTransition: If ``target`` is not reachable from ``current``
    """
    if target not in VALID_TRANSITIONS.get(current, []):
        raise InvalidTransition(current, target)


@dataclass(frozen=True)
class EscalationPlan:
    """How one turn will escalate its session."""
    session_id: str
    excerpt: str
    priority: str
    customer_id: Optional[str] = None
    existing: Optional[EscalationRecord] = None

    @property
    def reopened(self) -> bool:
        return self.existing is not None

    @property
    def reason(self) -> str:
        prefix = REESCALATION_PREFIX if self.reopened else REASON_PREFIX
        return prefix + self.excerpt

    @property
    def session_status(self) -> str:
        return SESSION_STATUS_FOR[PENDING]


class EscalationWorkflow:
    """
    Named transitions over escalation records and their sessions.

    Record fields and notes are written in one atomic store update; the
    mirrored session status is written immediately after unless the caller
    already stored it.
    """

    def __init__(self, repos: Repositories):
        self.repos = repos

    async def _transition(
        self,
        record: EscalationRecord,
        target: str,
        action: str,
        notes: Optional[List[Note]] = None,
        mirror: bool = True,
        **fields,
    ) -> EscalationRecord:
        validate_transition(record.status, target)

        updated = await self.repos.escalations.update(
            record.id,
            notes=notes,
            status=target,
            **fields,
        )
        if updated is None:
            raise NotFound(f"Escalation {record.id} not found")

        if mirror:
            await self._mirror_session(updated)

        logger.info(
            f"Escalation {record.id} {action}: {record.status} -> {target}",
            extra={"session_id": record.session_id, "escalation_id": record.id},
        )
        return updated

    async def _mirror_session(self, record: EscalationRecord) -> None:
        session_status = SESSION_STATUS_FOR[record.status]
        session = await self.repos.sessions.set_fields(record.session_id, status=session_status)
        if session is None:
            logger.warning(
                f"Escalation {record.id} references missing session {record.session_id}",
                extra={"session_id": record.session_id},
            )

    # ===========================
    # Orchestrator transitions
    # ===========================

    async def plan_escalation(
        self,
        session_id: str,
        user_message: str,
        priority: Priority,
        customer_id: Optional[str] = None,
    ) -> EscalationPlan:
        """
        Work out how a turn escalates without writing anything.

        Args:
            session_id: Session token
            user_message: Message that triggered the escalation
            priority: Priority computed for this turn
            customer_id: Session owner, if known
        """
        existing = await self.repos.escalations.find_for_session(session_id)
        return EscalationPlan(
            session_id=session_id,
            excerpt=truncate(user_message, REASON_EXCERPT_LENGTH),
            priority=Priority(priority).value,
            customer_id=customer_id,
            existing=existing,
        )

    async def commit_escalation(
        self,
        plan: EscalationPlan,
        note: Optional[Note] = None,
        mirror: bool = True,
    ) -> EscalationRecord:
        """
        Open the planned record, or reopen the existing one, in one write.

        Args:
            plan: Result of ``plan_escalation``
            note: System note stored with the record
            mirror: Also write the session status; callers that already
                stored it with the turn pass False
        """
        notes = [note] if note else []

        if plan.existing is None:
            record = EscalationRecord(
                session_id=plan.session_id,
                customer_id=plan.customer_id,
                reason=plan.reason,
                priority=plan.priority,
                notes=notes,
            )
            if await self.repos.escalations.insert(record):
                if mirror:
                    await self._mirror_session(record)
                logger.info(
                    f"Escalation {record.id} opened with priority {record.priority}",
                    extra={"session_id": plan.session_id, "escalation_id": record.id},
                )
                return record

            # Opened by another process since the plan was made
            existing = await self.repos.escalations.find_for_session(plan.session_id)
            if existing is None:
                raise NotFound(f"Escalation for session {plan.session_id} vanished")
            plan = replace(plan, existing=existing)

        fields = {"priority": plan.priority, "reason": plan.reason}
        if plan.customer_id and not plan.existing.customer_id:
            fields["customer_id"] = plan.customer_id

        return await self._transition(
            plan.existing,
            PENDING,
            "re-escalated",
            notes=notes or None,
            mirror=mirror,
            **fields,
        )

    # ===========================
    # Handler transitions
    # ===========================

    async def assign(self, record: EscalationRecord, handler: User, actor: User) -> EscalationRecord:
        note = Note(
            handler_id=actor.id,
            text=f"Assigned to {handler.name} by {actor.name}",
        )
        return await self._transition(
            record,
            IN_PROGRESS,
            "assigned",
            notes=[note],
            assigned_handler_id=handler.id,
        )

    async def record_admin_message(self, record: EscalationRecord, text: str, actor: User) -> EscalationRecord:
        """
        Note a handler message on the record.

        Open records move to in_progress. Resolved or closed records only
        receive the note so their status stays consistent with the session.
        """
        note = Note(
            handler_id=actor.id,
            text=f"Admin message sent: {truncate(text, NOTE_EXCERPT_LENGTH)}",
        )
        if record.is_open:
            return await self._transition(record, IN_PROGRESS, "handler replied", notes=[note])

        updated = await self.repos.escalations.update(record.id, notes=[note])
        if updated is None:
            raise NotFound(f"Escalation {record.id} not found")
        return updated

    async def resolve(self, record: EscalationRecord, notes: Optional[str], actor: User) -> EscalationRecord:
        """
        Resolve the record and the session.

        ``resolved_at`` is written once; resolving again only appends the note.
        """
        text = notes.strip() if notes and notes.strip() else DEFAULT_RESOLUTION_NOTE
        fields = {}
        if record.resolved_at is None:
            fields["resolved_at"] = utcnow()
        return await self._transition(
            record,
            RESOLVED,
            "resolved",
            notes=[Note(handler_id=actor.id, text=text)],
            **fields,
        )

    async def add_note(self, record: EscalationRecord, text: str, actor: User) -> EscalationRecord:
        updated = await self.repos.escalations.update(
            record.id,
            notes=[Note(handler_id=actor.id, text=text)],
        )
        if updated is None:
            raise NotFound(f"Escalation {record.id} not found")
        return updated

    async def set_priority(self, record: EscalationRecord, priority: Priority, actor: User) -> EscalationRecord:
        new_priority = Priority(priority).value
        note = Note(
            handler_id=actor.id,
            text=f"Priority changed from {record.priority} to {new_priority} by {actor.name}",
        )
        updated = await self.repos.escalations.update(record.id, notes=[note], priority=new_priority)
        if updated is None:
            raise NotFound(f"Escalation {record.id} not found")
        return updated


__all__ = [
    'EscalationWorkflow',
    'EscalationPlan',
    'escalation_entries',
    'VALID_TRANSITIONS',
    'SESSION_STATUS_FOR',
    'validate_transition',
    'escalation_notice',
    'REASON_PREFIX',
    'REESCALATION_PREFIX',
    'DEFAULT_RESOLUTION_NOTE',
]
