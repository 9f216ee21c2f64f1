"""
User model.

Architecture:
- Each user references one role (role_id); permissions come from that role
- Passwords are stored as an Argon2id digest plus a separate salt
- Soft deletion flips status to 'deleted'; the row stays for audit history
- Hard deletion removes the row and is refused while messages reference it
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from useradmin.models.base import Base, TimestampMixin
from useradmin.models.enums import UserStatus
from useradmin.models.role import Role


class User(Base, TimestampMixin):
    """
    User model for account administration.

    Attributes:
        id: UUID primary key
        username: Unique username (alphanumeric, 3-50 characters)
        email: Unique email address
        password_hash: Hex-encoded Argon2id digest (never exposed)
        salt: Hex-encoded salt used for password_hash (never exposed)
        first_name: Given name
        last_name: Family name
        role_id: Role granting this user's permissions
        status: active, inactive, suspended or deleted
        last_login: Timestamp of last successful login
        failed_login_attempts: Consecutive failed logins
        lockout_until: Login lockout expiry, cleared on password change
        password_last_changed: When the password was last set
        notification_preferences: Opaque client-defined mapping
        created_at: When the account was created
        updated_at: When the account was last updated
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    salt: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    role_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserStatus.active.value,
        index=True,
    )

    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Login protection
    failed_login_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    lockout_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    password_last_changed: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    notification_preferences: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )

    role: Mapped[Optional[Role]] = relationship(Role, lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'deleted')",
            name="status_valid",
        ),
    )

    @property
    def is_deleted(self) -> bool:
        """True once the account has been soft-deleted."""
        return self.status == UserStatus.deleted.value

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, status={self.status})"
