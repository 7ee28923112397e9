"""
Seed data.
"""
from .sample_faqs import SAMPLE_FAQS, sample_faq_entries

__all__ = ['SAMPLE_FAQS', 'sample_faq_entries']
