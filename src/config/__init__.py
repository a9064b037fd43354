"""
Configuration Package
Provides centralized configuration for the planning services.
"""

from .settings import Settings, settings

__all__ = [
    'Settings',
    'settings',
]
