"""
Dashboard statistics.
"""
import asyncio
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any, Dict

from ..models import (
    HANDLER_ROLES,
    OPEN_STATUSES,
    EscalationStatus,
    Priority,
    SessionStatus,
    utcnow,
)
from ..store import Query, Repositories

RECENT_WINDOW = timedelta(days=7)


@dataclass
class SessionStats:
    total: int
    escalated: int
    resolved: int
    recent: int


@dataclass
class EscalationStats:
    pending: int
    in_progress: int
    resolved: int
    high_priority: int
    recent: int


@dataclass
class UserStats:
    total: int
    handlers: int


@dataclass
class DashboardStats:
    sessions: SessionStats
    escalations: EscalationStats
    users: UserStats

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StatsService:
    def __init__(self, repos: Repositories):
        self.repos = repos

    async def dashboard(self) -> DashboardStats:
        """
        Counts for the admin dashboard.

        ``high_priority`` counts open (pending or in-progress) records with
        high or urgent priority; ``recent`` means created in the last 7 days.
        """
        since = (utcnow() - RECENT_WINDOW).isoformat()
        sessions = self.repos.sessions
        escalations = self.repos.escalations
        users = self.repos.users

        (
            total_sessions,
            escalated_sessions,
            resolved_sessions,
            recent_sessions,
            pending,
            in_progress,
            resolved,
            high_priority,
            recent_escalations,
            total_users,
            handlers,
        ) = await asyncio.gather(
            sessions.count(),
            sessions.count(Query(equals={"status": SessionStatus.ESCALATED.value})),
            sessions.count(Query(equals={"status": SessionStatus.RESOLVED.value})),
            sessions.count(Query(created_since=since)),
            escalations.count(Query(equals={"status": EscalationStatus.PENDING.value})),
            escalations.count(Query(equals={"status": EscalationStatus.IN_PROGRESS.value})),
            escalations.count(Query(equals={"status": EscalationStatus.RESOLVED.value})),
            escalations.count(Query(one_of={
                "priority": (Priority.HIGH.value, Priority.URGENT.value),
                "status": OPEN_STATUSES,
            })),
            escalations.count(Query(created_since=since)),
            users.count(),
            users.count(Query(one_of={"role": HANDLER_ROLES})),
        )

        return DashboardStats(
            sessions=SessionStats(
                total=total_sessions,
                escalated=escalated_sessions,
                resolved=resolved_sessions,
                recent=recent_sessions,
            ),
            escalations=EscalationStats(
                pending=pending,
                in_progress=in_progress,
                resolved=resolved,
                high_priority=high_priority,
                recent=recent_escalations,
            ),
            users=UserStats(total=total_users, handlers=handlers),
        )


__all__ = ['StatsService', 'DashboardStats']
