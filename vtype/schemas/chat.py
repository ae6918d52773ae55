"""
Chat history and contact list schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import Field

from vtype.models.enums import MessageType
from vtype.schemas.base import CamelModel


class MessageSender(CamelModel):
    id: UUID
    username: str
    profile_picture: Optional[str] = None


class ChatMessage(CamelModel):
    """A persisted message as rendered to clients."""
    id: int
    sender: MessageSender
    receiver: UUID
    content: str
    message_type: MessageType
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    has_more: bool


class ChatHistoryResponse(CamelModel):
    messages: List[ChatMessage]
    pagination: Pagination


class LastMessage(CamelModel):
    id: int
    sender: UUID
    receiver: UUID
    content: str
    message_type: MessageType
    is_read: bool
    created_at: datetime


class Contact(CamelModel):
    id: UUID
    username: str
    profile_picture: Optional[str] = None
    last_message: LastMessage
    unread_count: int = Field(0, ge=0)


class ContactsResponse(CamelModel):
    contacts: List[Contact]
