"""
Direct-message delivery protocol.

``ChatSession.handle()`` takes one decoded client frame and returns the
outgoing events it produced, each addressed to a set of connection ids. The
session never touches a socket, which keeps the protocol testable without a
transport; ``ConnectionManager`` does the actual delivery.
"""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.exceptions import DatabaseError, ErrorCode, ReceiverNotFound, VTypeException
from vtype.core.logging import logger
from vtype.schemas.realtime import (
    ChatJoinedPayload,
    ErrorPayload,
    GetOnlineUsers,
    JoinChat,
    LeaveChat,
    MarkMessagesRead,
    MessageNotificationPayload,
    MessagesReadPayload,
    NewMessagePayload,
    PresencePayload,
    SendMessage,
    SenderSummary,
    TypingPayload,
    TypingStart,
    TypingStop,
    incoming_event_adapter,
)
from vtype.services.chat.message_store import MessageRepository
from vtype.services.realtime.presence import PresenceRegistry
from vtype.services.realtime.rooms import RoomRouter, room_id
from vtype.services.user.directory import UserDirectory

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class ConnectedUser:
    """Identity attached to a connection at handshake time."""
    id: str
    username: str
    profile_picture: Optional[str] = None

    @classmethod
    def from_model(cls, user: Any) -> "ConnectedUser":
        return cls(id=str(user.id), username=user.username, profile_picture=user.profile_picture)


@dataclass
class OutgoingEvent:
    targets: Sequence[str]
    event: str
    data: Any = field(default_factory=dict)

    def to_frame(self) -> Dict[str, Any]:
        data = self.data
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
        return {"event": self.event, "data": data}


class ChatProtocol:
    """Shared state every chat session works against."""

    def __init__(
        self,
        presence: PresenceRegistry,
        rooms: RoomRouter,
        session_factory: SessionFactory
    ):
        self.presence = presence
        self.rooms = rooms
        self.session_factory = session_factory

    def session(self, connection_id: str, user: ConnectedUser) -> "ChatSession":
        return ChatSession(connection_id, user, self)


class ChatSession:
    """Protocol state machine for a single authenticated connection."""

    def __init__(self, connection_id: str, user: ConnectedUser, protocol: ChatProtocol):
        self.connection_id = connection_id
        self.user = user
        self.protocol = protocol
        self.presence = protocol.presence
        self.rooms = protocol.rooms
        self._handlers = {
            JoinChat: self._join_chat,
            SendMessage: self._send_message,
            TypingStart: self._typing_start,
            TypingStop: self._typing_stop,
            MarkMessagesRead: self._mark_read,
            LeaveChat: self._leave_chat,
            GetOnlineUsers: self._online_users,
        }

    # -- helpers -----------------------------------------------------------

    def _others(self) -> List[str]:
        return [cid for cid in self.presence.connection_ids() if cid != self.connection_id]

    def _error(self, message: str, code: Optional[str] = None) -> OutgoingEvent:
        return OutgoingEvent([self.connection_id], "error", ErrorPayload(message=message, code=code))

    def _error_from(self, exc: VTypeException) -> OutgoingEvent:
        return self._error(str(exc.detail), code=exc.code.value if exc.code else None)

    def _presence_payload(self) -> PresencePayload:
        return PresencePayload(user_id=self.user.id, username=self.user.username)

    # -- lifecycle ---------------------------------------------------------

    def open(self) -> List[OutgoingEvent]:
        """Register the connection and announce the user to everyone else."""
        self.presence.connect(self.user.id, self.connection_id)
        logger.info(
            "User connected",
            extra={"user_id": self.user.id, "connection_id": self.connection_id}
        )
        others = self._others()
        if not others:
            return []
        return [OutgoingEvent(others, "user-online", self._presence_payload())]

    def close(self) -> List[OutgoingEvent]:
        """Drop room memberships and, if this was the live connection, go offline."""
        self.rooms.drop_connection(self.connection_id)
        went_offline = self.presence.disconnect(self.connection_id)
        logger.info(
            "User disconnected",
            extra={
                "user_id": self.user.id,
                "connection_id": self.connection_id,
                "stale": went_offline is None
            }
        )
        if went_offline is None:
            return []
        others = self._others()
        if not others:
            return []
        return [OutgoingEvent(others, "user-offline", self._presence_payload())]

    # -- dispatch ----------------------------------------------------------

    async def handle(self, frame: Any) -> List[OutgoingEvent]:
        """Validate one incoming frame and run its handler."""
        try:
            event = incoming_event_adapter.validate_python(frame)
        except PydanticValidationError as e:
            logger.warning(
                "Rejected malformed frame",
                extra={"connection_id": self.connection_id, "errors": e.error_count()}
            )
            return [self._error("Invalid event payload", code=ErrorCode.VALIDATION_ERROR.value)]

        handler = self._handlers[type(event)]
        return await handler(event)

    # -- handlers ----------------------------------------------------------

    async def _join_chat(self, event: JoinChat) -> List[OutgoingEvent]:
        target = str(event.data.target_user_id)
        room = room_id(self.user.id, target)
        peer_connection = self.rooms.join(self.connection_id, self.user.id, target)
        logger.debug("Joined chat room", extra={"user_id": self.user.id, "room_id": room})
        if peer_connection is None:
            return []
        return [OutgoingEvent(
            [peer_connection],
            "chat-joined",
            ChatJoinedPayload(room_id=room, user_id=self.user.id, username=self.user.username)
        )]

    async def _send_message(self, event: SendMessage) -> List[OutgoingEvent]:
        payload = event.data
        target = str(payload.target_user_id)

        try:
            async with self.protocol.session_factory() as db:
                receiver = await UserDirectory(db).find_by_id(payload.target_user_id)
                if receiver is None:
                    return [self._error_from(ReceiverNotFound(context={"target_user_id": target}))]
                message = await MessageRepository(db).insert(
                    sender_id=UUID(self.user.id),
                    receiver_id=receiver.id,
                    content=payload.content,
                    message_type=payload.message_type
                )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to persist message",
                extra={"sender_id": self.user.id, "receiver_id": target, "error": str(e)}
            )
            return [self._error_from(DatabaseError("Failed to send message"))]

        room = room_id(self.user.id, target)
        new_message = NewMessagePayload(
            id=message.id,
            sender=SenderSummary(
                id=self.user.id,
                username=self.user.username,
                profile_picture=self.user.profile_picture
            ),
            receiver=target,
            content=message.content,
            message_type=message.message_type,
            created_at=message.created_at,
            room_id=room
        )

        events: List[OutgoingEvent] = []
        members = self.rooms.members(room)
        if members:
            events.append(OutgoingEvent(sorted(members), "new-message", new_message))

        receiver_connection = self.presence.lookup(target)
        if receiver_connection is not None and receiver_connection not in members:
            events.append(OutgoingEvent(
                [receiver_connection],
                "message-notification",
                MessageNotificationPayload(**new_message.model_dump(), from_=self.user.username)
            ))

        logger.info(
            "Message sent",
            extra={"message_id": message.id, "room_id": room, "room_members": len(members)}
        )
        return events

    async def _typing_start(self, event: TypingStart) -> List[OutgoingEvent]:
        return self._to_room_peers(
            str(event.data.target_user_id),
            "user-typing",
            TypingPayload(user_id=self.user.id, username=self.user.username)
        )

    async def _typing_stop(self, event: TypingStop) -> List[OutgoingEvent]:
        return self._to_room_peers(
            str(event.data.target_user_id),
            "user-stopped-typing",
            TypingPayload(user_id=self.user.id)
        )

    def _to_room_peers(self, target: str, name: str, payload: BaseModel) -> List[OutgoingEvent]:
        room = room_id(self.user.id, target)
        recipients = sorted(self.rooms.members(room) - {self.connection_id})
        if not recipients:
            return []
        return [OutgoingEvent(recipients, name, payload)]

    async def _mark_read(self, event: MarkMessagesRead) -> List[OutgoingEvent]:
        peer_id = event.data.target_user_id
        read_at = datetime.now(timezone.utc)
        try:
            async with self.protocol.session_factory() as db:
                count = await MessageRepository(db).update_many_read_status(
                    sender_id=peer_id,
                    receiver_id=UUID(self.user.id),
                    read_at=read_at
                )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to mark messages read",
                extra={"reader_id": self.user.id, "peer_id": str(peer_id), "error": str(e)}
            )
            return [self._error_from(DatabaseError("Failed to mark messages as read"))]

        if count == 0:
            return []
        peer_connection = self.presence.lookup(str(peer_id))
        if peer_connection is None:
            return []
        return [OutgoingEvent(
            [peer_connection],
            "messages-read",
            MessagesReadPayload(read_by=self.user.id, read_at=read_at, count=count)
        )]

    async def _leave_chat(self, event: LeaveChat) -> List[OutgoingEvent]:
        room = room_id(self.user.id, str(event.data.target_user_id))
        self.rooms.leave(self.connection_id, room)
        logger.debug("Left chat room", extra={"user_id": self.user.id, "room_id": room})
        return []

    async def _online_users(self, event: GetOnlineUsers) -> List[OutgoingEvent]:
        return [OutgoingEvent(
            [self.connection_id],
            "online-users",
            self.presence.list_online(excluding=self.user.id)
        )]
