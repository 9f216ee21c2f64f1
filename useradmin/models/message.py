"""
Message model.

Messages are authored by users. They are only read here to decide whether a
user can be permanently removed: the sender foreign key is ON DELETE RESTRICT,
so the database refuses a hard delete even if the application check races.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from useradmin.models.base import Base, utcnow


class Message(Base):
    """
    Chat message authored by a user.

    Attributes:
        id: UUID primary key
        sender_id: Author (blocks hard deletion of that user)
        channel_id: Channel the message was posted to
        text: Message body
        timestamp: When the message was sent
    """

    __tablename__ = "messages"

    sender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    channel_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
