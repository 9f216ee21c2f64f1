"""
Repository layer for database access.
"""

from useradmin.repositories.audit_repository import AuditLogRepository
from useradmin.repositories.base import BaseRepository
from useradmin.repositories.message_repository import MessageRepository
from useradmin.repositories.role_repository import RoleRepository
from useradmin.repositories.user_repository import UserRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "MessageRepository",
    "RoleRepository",
    "UserRepository",
]
