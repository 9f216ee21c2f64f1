"""
AuditLog model and the audit action vocabulary.

Audit logs are WRITE-ONCE. Every policy denial and every successful
user-management operation appends exactly one row.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from useradmin.models.base import Base, utcnow


class AuditAction(str, enum.Enum):
    """
    Audit action tags.

    Values are stored verbatim and are part of the external contract:
    log consumers filter on them.
    """

    # Listing
    UNAUTHORIZED_ACCESS_ATTEMPT = "unauthorized_access_attempt"
    USERS_LISTED = "users_listed"

    # Single user lookup
    UNAUTHORIZED_USER_LOOKUP = "unauthorized_user_lookup"
    USER_LOOKED_UP = "user_looked_up"

    # Create / update
    UNAUTHORIZED_USER_CREATION = "unauthorized_user_creation"
    USER_CREATED = "user_created"
    UNAUTHORIZED_USER_UPDATE = "unauthorized_user_update"
    USER_UPDATED = "user_updated"

    # Password
    UNAUTHORIZED_PASSWORD_ADMIN_OVERRIDE = "unauthorized_password_admin_override"
    UNAUTHORIZED_PASSWORD_CHANGE = "unauthorized_password_change"
    PASSWORD_CHANGE_WRONG_CURRENT_PASSWORD = "password_change_wrong_current_password"
    USER_PASSWORD_CHANGED = "user_password_changed"

    # Permissions
    UNAUTHORIZED_PERMISSIONS_LOOKUP = "unauthorized_permissions_lookup"
    USER_PERMISSIONS_LOOKED_UP = "user_permissions_looked_up"

    # Deletion
    UNAUTHORIZED_USER_DELETION = "unauthorized_user_deletion"
    USER_SOFT_DELETED = "user_soft_deleted"
    USER_HARD_DELETED = "user_hard_deleted"

    # Notification preferences
    UNAUTHORIZED_PREFERENCES_UPDATE = "unauthorized_preferences_update"
    NOTIFICATION_PREFERENCES_UPDATED = "notification_preferences_updated"

    # Search
    UNAUTHORIZED_USER_SEARCH = "unauthorized_user_search"
    USER_SEARCH_PERFORMED = "user_search_performed"

    # Audit log
    UNAUTHORIZED_AUDIT_LOG_ACCESS = "unauthorized_audit_log_access"
    AUDIT_LOG_ACCESSED = "audit_log_accessed"

    # Sessions
    UNAUTHORIZED_SESSIONS_LOOKUP = "unauthorized_sessions_lookup"
    USER_SESSIONS_LOOKED_UP = "user_sessions_looked_up"
    UNAUTHORIZED_SESSION_TERMINATION = "unauthorized_session_termination"
    USER_SESSIONS_TERMINATED = "user_sessions_terminated"


class AuditLog(Base):
    """
    AuditLog model for tracking user-administration actions.

    Attributes:
        id: UUID primary key
        user_id: Principal who performed (or attempted) the action
        action: Action tag (AuditAction value)
        target_user_id: User acted upon, copied from details["target_id"]
        details: JSONB context (target_id, ip_address, reason, counts, fields)
        ip_address: Client IP address
        user_agent: Client user agent
        request_id: Correlation ID for tracing requests
        timestamp: When the action occurred

    user_id and target_user_id carry no foreign key: entries must outlive a
    hard-deleted user.
    """

    __tablename__ = "audit_logs"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    target_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
    )

    details: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )

    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )

    user_agent: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    request_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_audit_logs_target_timestamp", "target_user_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"AuditLog(id={self.id}, user_id={self.user_id}, action={self.action}, "
            f"target_user_id={self.target_user_id})"
        )
