"""
Role and Permission models.

This module defines:
- Role: named bundle of permissions; one role may be marked as default
- Permission: a named capability such as "users.view"
- role_permissions: many-to-many association between the two

Every user references exactly one role (users.role_id). A user's effective
permissions are the permissions attached to that role.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from useradmin.models.base import Base, utcnow

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column(
        "role_id",
        UUID(as_uuid=True),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "permission_id",
        UUID(as_uuid=True),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(Base):
    """
    Permission model.

    Attributes:
        id: UUID primary key
        name: Unique permission name (e.g. "admin.users")
        description: Human-readable description
        category: Grouping used by administration screens
    """

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"Permission(id={self.id}, name={self.name})"


class Role(Base):
    """
    Role model.

    Attributes:
        id: UUID primary key
        name: Unique role name
        description: Human-readable description
        is_default: Assigned to users created without an explicit role
        created_at: When the role was created
        permissions: Permissions granted by this role
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    permissions: Mapped[list[Permission]] = relationship(
        Permission,
        secondary=role_permissions,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"Role(id={self.id}, name={self.name}, is_default={self.is_default})"
