"""
Services module for SupportDesk.
Provides matching, detection, completion, auth and directory services.
"""

from .faq_matcher import FAQMatcher
from .escalation_detector import EscalationDetector, DetectionResult
from .topic_filter import TopicFilter, REDIRECT_MESSAGE
from .completion_provider import (
    CompletionProvider,
    OpenAICompletionProvider,
    OfflineCompletionProvider,
    create_completion_provider,
)
from .auth_service import (
    AuthService,
    get_current_user,
    require_user,
    require_admin,
    require_handler,
    RoleChecker,
)
from .user_service import UserService
from .stats_service import StatsService, DashboardStats

__all__ = [
    # Matching & detection
    'FAQMatcher',
    'EscalationDetector',
    'DetectionResult',
    'TopicFilter',
    'REDIRECT_MESSAGE',

    # Completion
    'CompletionProvider',
    'OpenAICompletionProvider',
    'OfflineCompletionProvider',
    'create_completion_provider',

    # Auth
    'AuthService',
    'get_current_user',
    'require_user',
    'require_admin',
    'require_handler',
    'RoleChecker',

    # Directory
    'UserService',
    'StatsService',
    'DashboardStats',
]
