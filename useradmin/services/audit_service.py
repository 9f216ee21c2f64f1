"""
Audit service for append-only audit logging.

This module provides:
- Audit entry creation for every policy denial and successful operation
- Audit log retrieval per target user
"""

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.audit_log import AuditAction, AuditLog
from useradmin.repositories.audit_repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """
    Service class for audit logging operations.

    Every append commits the session immediately. A denial audit is therefore
    persisted even though the request then fails with 403, and a success
    audit commits the mutation that preceded it.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuditService.

        Args:
            session: Async database session
        """
        self.session = session
        self.audit_repo = AuditLogRepository(session)

    async def append(
        self,
        principal_id: uuid.UUID | None,
        action: AuditAction,
        details: dict[str, Any],
        user_agent: str | None = None,
        request_id: str | None = None,
    ) -> AuditLog:
        """
        Append one audit entry.

        Args:
            principal_id: User who performed or attempted the action
            action: Action tag
            details: JSON context. "target_id" and "ip_address" keys are also
                copied into their own indexed columns
            user_agent: Client user agent
            request_id: Correlation ID for request tracing

        Returns:
            Created AuditLog instance

        Example:
            await audit_service.append(
                principal_id=admin.id,
                action=AuditAction.USER_UPDATED,
                details={"target_id": str(user.id), "ip_address": "10.0.0.1",
                         "fields": ["email"]},
            )
        """
        target_id = details.get("target_id")
        audit_log = AuditLog(
            user_id=principal_id,
            action=action.value,
            target_user_id=uuid.UUID(str(target_id)) if target_id else None,
            details=details,
            ip_address=details.get("ip_address"),
            user_agent=user_agent,
            request_id=request_id,
        )
        audit_log = await self.audit_repo.add(audit_log)
        await self.session.commit()

        logger.debug(
            f"Audit log created: user={principal_id}, action={action.value}, "
            f"target={target_id}"
        )

        return audit_log

    async def get_for_target(
        self, target_id: uuid.UUID, limit: int, offset: int
    ) -> list[AuditLog]:
        """
        Get audit entries about a user, newest first.

        Args:
            target_id: User the entries refer to
            limit: Maximum number of entries
            offset: Number of entries to skip

        Returns:
            List of AuditLog instances
        """
        return await self.audit_repo.get_for_target(target_id, limit=limit, offset=offset)

    async def count_for_target(self, target_id: uuid.UUID) -> int:
        return await self.audit_repo.count_for_target(target_id)
