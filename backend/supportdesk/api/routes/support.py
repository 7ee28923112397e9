"""
Support API routes: session tokens, user messages, transcripts and FAQs.
"""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...container import ServiceContainer
from ...exceptions import NotFound
from ...models import Session, User
from ...models.schemas import ApiResponse, SendMessageRequest, TurnResponse
from ...services import get_current_user, require_user
from ..dependencies import get_services, paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_summary(session: Session) -> dict:
    return session.model_dump(mode="json", exclude={"messages"})


def _session_detail(session: Session) -> dict:
    data = _session_summary(session)
    data["conversation"] = [m.to_document() for m in session.messages]
    return data


@router.post("/sessions", response_model=ApiResponse)
async def create_session():
    """
    Issue a new session token.

    Nothing is persisted until the first message arrives.
    """
    session_id = str(uuid.uuid4())
    logger.debug(f"Issued session token {session_id}")
    return ApiResponse(
        message="Session ID generated. The session is created when the first message is sent.",
        data={"session_id": session_id},
    )


@router.post("/messages", response_model=TurnResponse)
async def send_message(
    request: SendMessageRequest,
    user: Optional[User] = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Submit a user message and receive the reply.

    Args:
        request: Session token and message text
        user: Authenticated caller, if any

    Returns:
        Reply, its source and the session status
    """
    result = await services.orchestrator.handle_user_message(
        request.session_id or "",
        request.message or "",
        caller_user_id=user.id if user else None,
    )

    return TurnResponse(
        response=result.reply,
        source=result.source,
        session_id=result.session_id,
        status=result.session_status,
        needs_escalation=result.escalation_triggered,
        escalation_id=result.escalation_id,
        priority=result.priority,
    )


@router.get("/sessions/{session_id}", response_model=ApiResponse)
async def get_transcript(
    session_id: str,
    services: ServiceContainer = Depends(get_services),
):
    session = await services.orchestrator.get_transcript(session_id)
    return ApiResponse(data={"session": _session_detail(session)})


@router.get("/faqs", response_model=ApiResponse)
async def list_faqs(services: ServiceContainer = Depends(get_services)):
    """List the FAQ catalog grouped by category."""
    faqs = sorted(
        await services.repos.faqs.list(),
        key=lambda f: (f.category, f.question),
    )
    return ApiResponse(data={"faqs": [f.to_document() for f in faqs]})


@router.get("/history", response_model=ApiResponse)
async def get_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    """The caller's sessions, most recently active first."""
    sessions = await services.repos.sessions.list_for_user(user.id)
    result = paginate(sessions, page, limit)

    return ApiResponse(
        data={
            "sessions": [_session_summary(s) for s in result["items"]],
            "pagination": result["pagination"],
        }
    )


@router.get("/history/{session_id}", response_model=ApiResponse)
async def get_history_session(
    session_id: str,
    user: User = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    session = await services.repos.sessions.get(session_id)
    if session is None or session.user_id != user.id:
        raise NotFound("Session not found or access denied")

    return ApiResponse(data={"session": _session_detail(session)})
