"""
Admin API routes: escalation handling, dashboard statistics and user
management.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...agents.admin_actions import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, EscalationDetail
from ...container import ServiceContainer
from ...models import EscalationRecord, User
from ...models.schemas import (
    AdminMessageRequest,
    ApiResponse,
    AssignRequest,
    NoteRequest,
    PriorityRequest,
    RegisterRequest,
    ResolveRequest,
    UpdateUserRequest,
)
from ...services import require_admin, require_handler
from ..dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


def _escalation(record: EscalationRecord) -> dict:
    data = record.model_dump(mode="json")
    data["notes"] = [n.to_document() for n in record.notes]
    return data


def _detail(detail: EscalationDetail) -> dict:
    data = {
        "escalation": _escalation(detail.record),
        "conversation": [m.to_document() for m in detail.conversation],
        "customer": detail.customer.to_public_dict() if detail.customer else None,
        "assigned_handler": (
            detail.assigned_handler.to_public_dict() if detail.assigned_handler else None
        ),
    }
    for note in data["escalation"]["notes"]:
        author = detail.note_authors.get(note.get("handler_id"))
        note["author_name"] = author.name if author else None
    return data


# ===========================
# Escalations
# ===========================

@router.get("/escalations", response_model=ApiResponse)
async def list_escalations(
    status: Optional[str] = Query(None, description="pending, in_progress, resolved, closed or all"),
    priority: Optional[str] = Query(None, description="low, medium, high, urgent or all"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    """Escalations, most urgent first then newest first."""
    result = await services.admin.list_escalations(
        status=status,
        priority=priority,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        data={
            "escalations": [_escalation(r) for r in result.records],
            "pagination": result.pagination(),
        }
    )


@router.get("/escalations/{escalation_id}", response_model=ApiResponse)
async def get_escalation(
    escalation_id: str,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    detail = await services.admin.get_escalation_detail(escalation_id)
    return ApiResponse(data=_detail(detail))


@router.post("/escalations/{escalation_id}/assign", response_model=ApiResponse)
async def assign_escalation(
    escalation_id: str,
    request: AssignRequest,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    record = await services.admin.assign(escalation_id, request.handler_id or "", actor)
    return ApiResponse(message="Handler assigned", data={"escalation": _escalation(record)})


@router.post("/escalations/{escalation_id}/notes", response_model=ApiResponse)
async def add_note(
    escalation_id: str,
    request: NoteRequest,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    record = await services.admin.add_note(escalation_id, request.note or "", actor)
    return ApiResponse(message="Note added", data={"escalation": _escalation(record)})


@router.post("/escalations/{escalation_id}/resolve", response_model=ApiResponse)
async def resolve_escalation(
    escalation_id: str,
    request: Optional[ResolveRequest] = None,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    notes = request.notes if request else None
    record = await services.admin.resolve(escalation_id, notes, actor)
    return ApiResponse(message="Escalation resolved", data={"escalation": _escalation(record)})


@router.post("/escalations/{escalation_id}/priority", response_model=ApiResponse)
async def update_priority(
    escalation_id: str,
    request: PriorityRequest,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    record = await services.admin.update_priority(escalation_id, request.priority, actor)
    return ApiResponse(message="Priority updated", data={"escalation": _escalation(record)})


@router.post("/sessions/{session_id}/messages", response_model=ApiResponse)
async def send_admin_message(
    session_id: str,
    request: AdminMessageRequest,
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    """Post a handler reply into the customer's conversation."""
    result = await services.admin.send_admin_message(session_id, request.message or "", actor)
    return ApiResponse(
        message="Admin message sent",
        data={
            "session_id": session_id,
            "status": result.session.status,
            "message": result.message.to_document(),
        },
    )


# ===========================
# Dashboard
# ===========================

@router.get("/dashboard/stats", response_model=ApiResponse)
async def dashboard_stats(
    actor: User = Depends(require_handler),
    services: ServiceContainer = Depends(get_services),
):
    stats = await services.stats.dashboard()
    return ApiResponse(data=stats.to_dict())


# ===========================
# Users
# ===========================

@router.get("/users", response_model=ApiResponse)
async def list_users(
    actor: User = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    users = await services.users.list_users()
    return ApiResponse(data={"users": [u.to_public_dict() for u in users]})


@router.post("/users", response_model=ApiResponse, status_code=201)
async def create_user(
    request: RegisterRequest,
    actor: User = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    user = await services.users.create_user(
        request.name,
        request.email,
        request.password,
        request.role,
    )
    logger.info(f"Admin {actor.id} created user {user.id} ({user.role})")
    return ApiResponse(message="User created", data={"user": user.to_public_dict()})


@router.put("/users/{user_id}", response_model=ApiResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    actor: User = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    user = await services.users.update_user(
        user_id,
        name=request.name,
        role=request.role,
        is_active=request.is_active,
    )
    return ApiResponse(message="User updated", data={"user": user.to_public_dict()})
