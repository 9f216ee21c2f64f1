"""
Message repository.

Only the queries user administration needs: counting a user's messages to
decide whether the user may be permanently deleted.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.message import Message
from useradmin.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Message, session)

    async def count_by_sender(self, sender_id: uuid.UUID) -> int:
        """
        Count messages authored by a user.

        Args:
            sender_id: UUID of the author

        Returns:
            Number of messages referencing the user
        """
        result = await self.session.execute(
            select(func.count()).select_from(Message).where(Message.sender_id == sender_id)
        )
        return result.scalar_one()
