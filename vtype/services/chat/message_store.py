"""
Durable message storage.

``MessageRepository`` is the only component that writes to the ``messages``
table. Inserts commit before returning so callers can fan a message out
knowing it is already recorded.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vtype.core.logging import logger
from vtype.models import Message, MessageType, User


class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
        message_type: MessageType = MessageType.TEXT
    ) -> Message:
        """Persist a message and return it with its id assigned."""
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            message_type=message_type,
            is_read=False
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.debug(
            "Stored message",
            extra={"message_id": message.id, "sender_id": str(sender_id), "receiver_id": str(receiver_id)}
        )
        return message

    async def find_between(
        self,
        user_a: UUID,
        user_b: UUID,
        page: int = 1,
        limit: int = 50
    ) -> List[Message]:
        """
        One page of the conversation between two users.

        Pages are counted from the newest message backwards; the messages
        inside a page are returned oldest first.
        """
        page = max(page, 1)
        stmt = (
            select(Message)
            .options(selectinload(Message.sender))
            .where(
                or_(
                    and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                    and_(Message.sender_id == user_b, Message.receiver_id == user_a),
                )
            )
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def update_many_read_status(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        read_at: Optional[datetime] = None
    ) -> int:
        """Mark every unread message from ``sender_id`` to ``receiver_id`` as read."""
        read_at = read_at or datetime.now(timezone.utc)
        result = await self.db.execute(
            update(Message)
            .where(
                Message.sender_id == sender_id,
                Message.receiver_id == receiver_id,
                Message.is_read.is_(False)
            )
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def list_contacts(self, user_id: UUID) -> List[Dict[str, Any]]:
        """
        Everyone ``user_id`` has exchanged messages with.

        Each entry holds the peer, the latest message in either direction and
        how many messages from the peer are still unread, newest conversation
        first.
        """
        peer = case(
            (Message.sender_id == user_id, Message.receiver_id),
            else_=Message.sender_id
        ).label("peer_id")
        unread = func.sum(
            case(
                (and_(Message.receiver_id == user_id, Message.is_read.is_(False)), 1),
                else_=0
            )
        )
        summary = (
            select(
                peer,
                func.max(Message.id).label("last_id"),
                unread.label("unread_count")
            )
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .group_by(peer)
            .subquery()
        )
        stmt = (
            select(User, Message, summary.c.unread_count)
            .join(summary, User.id == summary.c.peer_id)
            .join(Message, Message.id == summary.c.last_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        result = await self.db.execute(stmt)
        return [
            {"user": user, "last_message": message, "unread_count": int(unread_count or 0)}
            for user, message, unread_count in result.all()
        ]
