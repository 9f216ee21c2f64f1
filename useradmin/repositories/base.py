"""
Base repository with generic CRUD operations.

This module provides a generic repository pattern for database operations.
All specific repositories should inherit from BaseRepository.

Type Parameters:
    ModelType: The SQLAlchemy model class (e.g., User, Role, etc.)
"""

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository for database operations.

    Subclasses override _apply_visibility_filter to hide rows that normal
    reads must not return (e.g. soft-deleted users).

    Usage:
        class RoleRepository(BaseRepository[Role]):
            def __init__(self, session: AsyncSession):
                super().__init__(Role, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    def _apply_visibility_filter(self, query: Select[Any]) -> Select[Any]:
        """Restrict a query to rows visible to normal reads. No-op by default."""
        return query

    async def add(self, instance: ModelType) -> ModelType:
        """Insert and flush, then refresh so server defaults are loaded."""
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(
        self, id: uuid.UUID, include_deleted: bool = False
    ) -> ModelType | None:
        query = select(self.model).where(self.model.id == id)
        if not include_deleted:
            query = self._apply_visibility_filter(query)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ModelType]:
        """
        Get visible records, optionally paginated.

        Args:
            offset: Number of records to skip
            limit: Maximum number of records to return (None for all)

        Returns:
            List of model instances
        """
        query = self._apply_visibility_filter(select(self.model)).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, instance: ModelType) -> ModelType:
        """Flush attribute changes already made on instance and refresh it."""
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Permanently remove a row. Foreign key violations surface as IntegrityError."""
        await self.session.delete(instance)
        await self.session.flush()
