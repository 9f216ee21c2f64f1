"""
Database models for the user administration service.

Importing this package registers every table on Base.metadata.
"""

from useradmin.models.audit_log import AuditAction, AuditLog
from useradmin.models.base import Base
from useradmin.models.enums import PermissionName, UserStatus
from useradmin.models.message import Message
from useradmin.models.role import Permission, Role, role_permissions
from useradmin.models.user import User

__all__ = [
    "AuditAction",
    "AuditLog",
    "Base",
    "Message",
    "Permission",
    "PermissionName",
    "Role",
    "User",
    "UserStatus",
    "role_permissions",
]
