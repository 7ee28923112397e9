"""
Agents module for SupportDesk.
"""

from .escalation_workflow import EscalationWorkflow
from .conversation_orchestrator import ConversationOrchestrator, TurnResult
from .admin_actions import AdminActionHandler, EscalationPage, EscalationDetail

__all__ = [
    "EscalationWorkflow",
    "ConversationOrchestrator",
    "TurnResult",
    "AdminActionHandler",
    "EscalationPage",
    "EscalationDetail",
]
