"""
Audit log repository for audit-specific database operations.

Audit logs are append-only: this repository never updates or deletes rows.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.audit_log import AuditLog
from useradmin.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog model operations."""

    def __init__(self, session: AsyncSession):
        """
        Initialize AuditLogRepository.

        Args:
            session: Async database session
        """
        super().__init__(AuditLog, session)

    async def get_for_target(
        self,
        target_user_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLog]:
        """
        Get audit entries about a user, newest first.

        Args:
            target_user_id: User the entries refer to
            limit: Maximum number of entries to return
            offset: Number of entries to skip

        Returns:
            List of AuditLog instances
        """
        query = (
            select(AuditLog)
            .where(AuditLog.target_user_id == target_user_id)
            .order_by(AuditLog.timestamp.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_for_target(self, target_user_id: uuid.UUID) -> int:
        """Count audit entries about a user."""
        result = await self.session.execute(
            select(func.count())
            .select_from(AuditLog)
            .where(AuditLog.target_user_id == target_user_id)
        )
        return result.scalar_one()
