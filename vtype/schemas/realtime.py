"""
Websocket frame schemas.

Every frame is a JSON object ``{"event": <name>, "data": {...}}``. Incoming
frames are parsed into a discriminated union keyed by ``event``; outgoing
payloads are dumped with camelCase keys.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID
from pydantic import Field, TypeAdapter, field_validator

from vtype.models.enums import MessageType
from vtype.schemas.base import CamelModel

MAX_MESSAGE_LENGTH = 5000


# Incoming payloads

class TargetPayload(CamelModel):
    target_user_id: UUID


class SendMessagePayload(TargetPayload):
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    message_type: MessageType = MessageType.TEXT

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class EmptyPayload(CamelModel):
    pass


# Incoming events

class JoinChat(CamelModel):
    event: Literal["join-chat"]
    data: TargetPayload


class SendMessage(CamelModel):
    event: Literal["send-message"]
    data: SendMessagePayload


class TypingStart(CamelModel):
    event: Literal["typing-start"]
    data: TargetPayload


class TypingStop(CamelModel):
    event: Literal["typing-stop"]
    data: TargetPayload


class MarkMessagesRead(CamelModel):
    event: Literal["mark-messages-read"]
    data: TargetPayload


class LeaveChat(CamelModel):
    event: Literal["leave-chat"]
    data: TargetPayload


class GetOnlineUsers(CamelModel):
    event: Literal["get-online-users"]
    data: EmptyPayload = Field(default_factory=EmptyPayload)


IncomingEvent = Annotated[
    Union[JoinChat, SendMessage, TypingStart, TypingStop, MarkMessagesRead, LeaveChat, GetOnlineUsers],
    Field(discriminator="event")
]

incoming_event_adapter: TypeAdapter[IncomingEvent] = TypeAdapter(IncomingEvent)


# Outgoing payloads

class PresencePayload(CamelModel):
    """Body of user-online and user-offline."""
    user_id: str
    username: str


class ChatJoinedPayload(CamelModel):
    room_id: str
    user_id: str
    username: str


class SenderSummary(CamelModel):
    id: str = Field(..., serialization_alias="_id")
    username: str
    profile_picture: Optional[str] = None


class NewMessagePayload(CamelModel):
    id: int = Field(..., serialization_alias="_id")
    sender: SenderSummary
    receiver: str
    content: str
    message_type: MessageType
    created_at: datetime
    room_id: str


class MessageNotificationPayload(NewMessagePayload):
    from_: str = Field(..., serialization_alias="from", description="Sender username")


class TypingPayload(CamelModel):
    user_id: str
    username: Optional[str] = None


class MessagesReadPayload(CamelModel):
    read_by: str
    read_at: datetime
    count: int


class ErrorPayload(CamelModel):
    message: str
    code: Optional[str] = None
