"""
PURPOSE: Export configuration settings for Stonks.
"""

from .settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
