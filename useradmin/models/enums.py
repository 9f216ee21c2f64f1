"""
Enums shared by models, schemas and services.

This module defines:
- UserStatus: lifecycle state of a user account
- PermissionName: the permission names checked by the policy gate
"""

import enum


class UserStatus(str, enum.Enum):
    """
    Lifecycle state of a user account.

    Attributes:
        active: Normal account
        inactive: Disabled by an administrator, may be re-activated
        suspended: Temporarily blocked
        deleted: Soft-deleted. Terminal; excluded from list, get and search
    """

    active = "active"
    inactive = "inactive"
    suspended = "suspended"
    deleted = "deleted"

    @classmethod
    def assignable(cls) -> list["UserStatus"]:
        """Statuses an update or search filter may name."""
        return [cls.active, cls.inactive, cls.suspended]


class PermissionName(str, enum.Enum):
    """Permission names granted through roles."""

    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_EDIT = "users.edit"
    ADMIN_USERS = "admin.users"
    AUDIT_VIEW = "audit.view"
