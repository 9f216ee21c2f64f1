"""
Core module for the user administration service.

Exports the main configuration component.
"""

from useradmin.core.config import settings

__all__ = [
    # Config
    "settings",
]
