"""
SupportDesk: customer support chat backend with FAQ answers, AI replies and
escalation to human agents.
"""

__version__ = "1.0.0"

APP_NAME = "SupportDesk"
APP_DESCRIPTION = "Customer support chat with FAQ answers, AI replies and human escalation"

__all__ = [
    "APP_NAME",
    "APP_DESCRIPTION",
    "__version__",
]
