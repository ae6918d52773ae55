"""
Direct message model for VType application.

Messages are immutable once written except for the read flag and read
timestamp, which flip from unread to read at most once.
"""

# Standard library imports
from datetime import datetime, timezone
from typing import Optional
import uuid

# Third-party imports
from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Text,
    Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

# Application imports
from vtype.db.base_class import EntityBase
from vtype.models.enums import MessageType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(EntityBase):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_pair_created", "sender_id", "receiver_id", "created_at"),
        Index("ix_messages_receiver_unread", "receiver_id", "is_read"),
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[MessageType] = mapped_column(
        SQLEnum(MessageType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        default=MessageType.TEXT,
        nullable=False
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    sender = relationship("User", back_populates="sent_messages", foreign_keys=[sender_id])
