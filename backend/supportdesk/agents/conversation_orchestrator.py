"""
Conversation orchestrator.
Handles one end-user message: topic gate, lazy session creation, FAQ
short-circuit, completion, escalation and persistence.

Version: 1.0.0
"""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidRequest, NotFound, SessionResolved
from ..models import (
    FAQEntry,
    MaterializedSession,
    Message,
    MessageSource,
    Session,
    SessionRef,
    SessionStatus,
    UnmaterializedSession,
)
from ..services import (
    CompletionProvider,
    DetectionResult,
    EscalationDetector,
    FAQMatcher,
    REDIRECT_MESSAGE,
    TopicFilter,
)
from ..store import Repositories, SessionLockRegistry
from ..utils.telemetry import (
    metrics_collector,
    track_escalation,
    track_faq_hit,
    track_provider_failure,
    track_turn,
)
from .escalation_workflow import EscalationWorkflow, escalation_entries

logger = logging.getLogger(__name__)

PROVIDER_FAILURE_REPLY = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again in a moment or contact our support team directly."
)


@dataclass
class TurnResult:
    """Outcome of one user message."""
    reply: str
    source: str
    session_id: str
    session_status: str
    escalation_triggered: bool = False
    escalation_id: Optional[str] = None
    priority: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class _TurnDraft:
    """A turn's reply, worked out before anything is stored."""
    user_entry: Message
    reply: Message
    faq: Optional[FAQEntry] = None
    detection: Optional[DetectionResult] = None
    summary: Optional[str] = None

    @property
    def escalate(self) -> bool:
        return self.detection is not None and self.detection.escalate


class ConversationOrchestrator:
    """
    Sequences a support conversation turn.

    Each turn's transcript entries are stored with one write under a
    per-token lock, so turns on one session never interleave in the transcript. Turns on different
    tokens run concurrently. The completion provider is injected so tests
    can substitute a fake.
    """

    def __init__(
        self,
        repos: Repositories,
        provider: CompletionProvider,
        faq_matcher: FAQMatcher,
        detector: EscalationDetector,
        workflow: EscalationWorkflow,
        topic_filter: Optional[TopicFilter] = None,
        locks: Optional[SessionLockRegistry] = None,
    ):
        self.repos = repos
        self.provider = provider
        self.faq_matcher = faq_matcher
        self.detector = detector
        self.workflow = workflow
        self.topic_filter = topic_filter or TopicFilter()
        self.locks = locks or SessionLockRegistry()

        logger.info(
            f"ConversationOrchestrator initialized (provider={provider.name}, "
            f"faqs={len(faq_matcher)})"
        )

    # ===========================
    # Session resolution
    # ===========================

    async def lookup(self, session_id: str) -> SessionRef:
        session = await self.repos.sessions.get(session_id)
        if session is None:
            return UnmaterializedSession(session_id)
        return MaterializedSession(session)

    async def _save_turn(
        self,
        ref: SessionRef,
        first_message: str,
        entries: List[Message],
        caller_user_id: Optional[str],
        **fields: Any,
    ) -> Session:
        """
        Store a turn's transcript entries in one write, creating the session
        first if needed.

        Raises:
            SessionResolved: If the session is terminal
        """
        if isinstance(ref, UnmaterializedSession):
            session = Session.start(ref.session_id, first_message, user_id=caller_user_id)
            session.messages.extend(entries)
            if "status" in fields:
                session.status = fields["status"]
            if await self.repos.sessions.insert(session):
                logger.info(
                    f"Session {ref.session_id} created on first message",
                    extra={"session_id": ref.session_id, "user_id": caller_user_id},
                )
                return session

            # Created by another process between lookup and insert
            ref = await self.lookup(ref.session_id)
            if isinstance(ref, UnmaterializedSession):
                raise NotFound(f"Session {ref.session_id} could not be created")

        session = ref.session
        if session.is_resolved:
            raise SessionResolved(session.session_id)

        if caller_user_id and not session.user_id:
            fields["user_id"] = caller_user_id
            logger.info(
                f"Linking user {caller_user_id} to session {session.session_id}",
                extra={"session_id": session.session_id},
            )

        updated = await self.repos.sessions.append_messages(session.session_id, entries, **fields)
        if updated is None:
            raise NotFound(f"Session {session.session_id} not found")
        return updated

    # ===========================
    # Turn handling
    # ===========================

    async def handle_user_message(
        self,
        session_id: str,
        message: str,
        caller_user_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Handle one user message.

        The reply (and any escalation summary) is produced without holding
        the session lock. The lock then covers a fresh read of the session
        and the single write that stores the whole turn. Nothing is stored
        if that write fails.

        Args:
            session_id: Token issued by create-session
            message: User message text
            caller_user_id: Authenticated caller, if any

        Returns:
            TurnResult with reply, source and session status

        Raises:
            InvalidRequest: Missing token or message
            SessionResolved: Session already resolved
            PersistenceFailure: Store unavailable
        """
        if not session_id or not session_id.strip() or not message or not message.strip():
            raise InvalidRequest("Session ID and message are required")

        session_id = session_id.strip()
        start_time = time.time()

        if not self.topic_filter.is_support_query(message):
            logger.debug("Off-topic message redirected", extra={"session_id": session_id})
            track_turn(MessageSource.SYSTEM.value, time.time() - start_time)
            return TurnResult(
                reply=REDIRECT_MESSAGE,
                source=MessageSource.SYSTEM.value,
                session_id=session_id,
                session_status=SessionStatus.ACTIVE.value,
            )

        draft = await self._draft_turn(session_id, message, caller_user_id)

        async with self.locks.hold(session_id):
            result = await self._commit_turn(session_id, message, draft, caller_user_id)

        track_turn(result.source, time.time() - start_time)
        metrics_collector.record_turn(escalated=result.escalation_triggered)
        return result

    async def _draft_turn(
        self,
        session_id: str,
        message: str,
        caller_user_id: Optional[str],
    ) -> _TurnDraft:
        ref = await self.lookup(session_id)
        if isinstance(ref, MaterializedSession):
            if ref.session.is_resolved:
                raise SessionResolved(session_id)
            transcript = list(ref.session.messages)
        else:
            transcript = Session.start(session_id, message, user_id=caller_user_id).messages

        user_entry = Message.user(message)
        transcript.append(user_entry)

        faq = self.faq_matcher.match(message)
        if faq is not None:
            return _TurnDraft(
                user_entry=user_entry,
                reply=Message.assistant(faq.answer, source=MessageSource.FAQ),
                faq=faq,
            )

        reply = await self._generate_reply(message, transcript, session_id)
        detection = self.detector.evaluate(reply, message)
        summary = await self._summarize(transcript, session_id) if detection.escalate else None

        return _TurnDraft(
            user_entry=user_entry,
            reply=Message.assistant(reply, source=MessageSource.AI),
            detection=detection,
            summary=summary,
        )

    async def _commit_turn(
        self,
        session_id: str,
        message: str,
        draft: _TurnDraft,
        caller_user_id: Optional[str],
    ) -> TurnResult:
        ref = await self.lookup(session_id)
        if isinstance(ref, MaterializedSession) and ref.session.is_resolved:
            raise SessionResolved(session_id)

        entries = [draft.user_entry]
        fields: Dict[str, Any] = {}
        plan = None
        note = None

        if draft.escalate:
            owner = ref.session.user_id if isinstance(ref, MaterializedSession) else None
            plan = await self.workflow.plan_escalation(
                session_id,
                message,
                draft.detection.priority,
                customer_id=owner or caller_user_id,
            )
            notice, note = escalation_entries(plan.priority, plan.reason, draft.summary)
            entries.append(notice)
            fields["status"] = plan.session_status

        entries.append(draft.reply)
        session = await self._save_turn(ref, message, entries, caller_user_id, **fields)

        if draft.faq is not None:
            track_faq_hit(draft.faq.category)
            logger.info(
                f"FAQ answer sent: {draft.faq.question}",
                extra={"session_id": session_id, "faq_id": draft.faq.id},
            )
            return TurnResult(
                reply=draft.reply.content,
                source=MessageSource.FAQ.value,
                session_id=session_id,
                session_status=session.status,
            )

        escalation_id = None
        priority = None
        if plan is not None:
            record = await self.workflow.commit_escalation(plan, note, mirror=False)
            escalation_id = record.id
            priority = record.priority

            track_escalation(record.priority, plan.reopened)
            logger.warning(
                f"Session escalated to human support (priority={record.priority}, "
                f"reopened={plan.reopened}, signals={draft.detection.signals})",
                extra={"session_id": session_id, "escalation_id": record.id},
            )

        logger.info(
            f"Turn complete (source=ai, status={session.status}, "
            f"escalated={draft.escalate}, messages={len(session.messages)})",
            extra={"session_id": session_id},
        )

        return TurnResult(
            reply=draft.reply.content,
            source=MessageSource.AI.value,
            session_id=session_id,
            session_status=session.status,
            escalation_triggered=draft.escalate,
            escalation_id=escalation_id,
            priority=priority,
        )

    async def _generate_reply(self, message: str, transcript: List[Message], session_id: str) -> str:
        try:
            return await self.provider.generate(message, transcript)
        except Exception as e:
            track_provider_failure("generate")
            logger.error(
                f"Completion failed, sending fallback reply: {e}",
                extra={"session_id": session_id},
                exc_info=True,
            )
            return PROVIDER_FAILURE_REPLY

    async def _summarize(self, transcript: List[Message], session_id: str) -> Optional[str]:
        try:
            return await self.provider.summarize(transcript)
        except Exception as e:
            track_provider_failure("summarize")
            logger.error(
                f"Escalation summary failed, recording reason instead: {e}",
                extra={"session_id": session_id},
                exc_info=True,
            )
            return None


    # ===========================
    # Read operations
    # ===========================

    async def get_transcript(self, session_id: str) -> Session:
        """
        Raises:
            NotFound: If the session has not been materialized
        """
        ref = await self.lookup(session_id)
        if isinstance(ref, UnmaterializedSession):
            raise NotFound(f"Session {session_id} not found")
        return ref.session


__all__ = ['ConversationOrchestrator', 'TurnResult', 'PROVIDER_FAILURE_REPLY']
