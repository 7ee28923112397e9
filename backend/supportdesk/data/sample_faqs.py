"""
Default FAQ catalog loaded into an empty store.
"""
from typing import List

from ..models import FAQEntry

SAMPLE_FAQS = [
    {
        "question": "How do I reset my password?",
        "answer": (
            "You can reset your password by clicking 'Forgot Password' on the login "
            "page and following the instructions sent to your email."
        ),
        "category": "Account",
        "tags": ["password", "login", "reset"],
    },
    {
        "question": "What are your business hours?",
        "answer": (
            "Our customer support is available 24/7 through this AI assistant. For "
            "urgent matters, we escalate to human agents during business hours "
            "(9 AM - 6 PM EST)."
        ),
        "category": "General",
        "tags": ["hours", "support", "availability"],
    },
    {
        "question": "How can I track my order?",
        "answer": (
            "You can track your order by logging into your account and visiting the "
            "'Order History' section, or by using the tracking link sent to your email."
        ),
        "category": "Orders",
        "tags": ["tracking", "order", "shipping"],
    },
    {
        "question": "What payment methods do you accept?",
        "answer": "We accept Visa, MasterCard, American Express, PayPal, and Apple Pay.",
        "category": "Billing",
        "tags": ["payment", "credit card", "checkout"],
    },
]


def sample_faq_entries() -> List[FAQEntry]:
    """Fresh FAQEntry objects for the default catalog."""
    return [FAQEntry(**faq) for faq in SAMPLE_FAQS]


__all__ = ['SAMPLE_FAQS', 'sample_faq_entries']
