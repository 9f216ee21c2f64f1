"""
API routes for the user administration service.

This package contains all API endpoint definitions organized by feature.
"""

from useradmin.api.routes import health, root, users

__all__ = ["health", "root", "users"]
