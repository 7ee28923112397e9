"""
Configuration package.
"""
from .settings import Settings, StoreType, Environment, settings, get_settings

__all__ = ['Settings', 'StoreType', 'Environment', 'settings', 'get_settings']
