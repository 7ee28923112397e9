"""
Tests for dashboard statistics.
"""
from datetime import timedelta

from supportdesk.models import EscalationRecord, Session, utcnow
from supportdesk.services import StatsService


async def test_dashboard_counts(repos, admin_user, agent_user, customer_user):
    old = utcnow() - timedelta(days=30)

    await repos.sessions.insert(Session(session_id="s1", status="escalated"))
    await repos.sessions.insert(Session(session_id="s2", status="resolved", created_at=old))
    await repos.sessions.insert(Session(session_id="s3"))

    records = [
        EscalationRecord(session_id="s1", reason="r", priority="high", status="pending"),
        EscalationRecord(session_id="s2", reason="r", priority="urgent", status="resolved", created_at=old),
        EscalationRecord(session_id="s4", reason="r", priority="medium", status="in_progress"),
        EscalationRecord(session_id="s5", reason="r", priority="urgent", status="in_progress"),
    ]
    for record in records:
        await repos.escalations.insert(record)

    stats = (await StatsService(repos).dashboard()).to_dict()

    assert stats["sessions"] == {"total": 3, "escalated": 1, "resolved": 1, "recent": 2}
    assert stats["escalations"] == {
        "pending": 1,
        "in_progress": 2,
        "resolved": 1,
        "high_priority": 2,
        "recent": 3,
    }
    assert stats["users"] == {"total": 3, "handlers": 2}


async def test_dashboard_on_empty_store(repos):
    stats = (await StatsService(repos).dashboard()).to_dict()

    assert stats["sessions"]["total"] == 0
    assert stats["escalations"]["high_priority"] == 0
    assert stats["users"] == {"total": 0, "handlers": 0}
