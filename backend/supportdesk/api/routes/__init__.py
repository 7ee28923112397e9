"""
API routes module initialization.
"""
from . import admin, auth, health, support

__all__ = ["admin", "auth", "health", "support"]
