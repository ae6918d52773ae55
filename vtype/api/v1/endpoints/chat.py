"""
Chat history endpoints.

Live delivery happens over the websocket; these routes serve what is already
persisted.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.auth import get_current_user
from vtype.core.config import settings
from vtype.core.error_handlers import get_error_responses
from vtype.core.exceptions import ResourceNotFound
from vtype.db.session import get_db
from vtype.models import Message, User
from vtype.schemas.chat import (
    ChatHistoryResponse,
    ChatMessage,
    Contact,
    ContactsResponse,
    LastMessage,
    MessageSender,
    Pagination,
)
from vtype.services.chat.message_store import MessageRepository
from vtype.services.user.directory import UserDirectory

router = APIRouter()


def _render_message(message: Message) -> ChatMessage:
    sender = message.sender
    return ChatMessage(
        id=message.id,
        sender=MessageSender(
            id=sender.id,
            username=sender.username,
            profile_picture=sender.profile_picture
        ),
        receiver=message.receiver_id,
        content=message.content,
        message_type=message.message_type,
        is_read=message.is_read,
        read_at=message.read_at,
        created_at=message.created_at
    )


def _render_contact(entry: dict[str, Any]) -> Contact:
    user: User = entry["user"]
    last: Message = entry["last_message"]
    return Contact(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        last_message=LastMessage(
            id=last.id,
            sender=last.sender_id,
            receiver=last.receiver_id,
            content=last.content,
            message_type=last.message_type,
            is_read=last.is_read,
            created_at=last.created_at
        ),
        unread_count=entry["unread_count"]
    )


@router.get(
    "/history/{target_user_id}",
    response_model=ChatHistoryResponse,
    responses=get_error_responses("chat_history")
)
async def get_chat_history(
    target_user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.CHAT_HISTORY_MAX_LIMIT),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ChatHistoryResponse:
    """
    One page of the conversation with another user.

    Page 1 holds the newest messages; each page is ordered oldest first.
    """
    target = await UserDirectory(db).find_by_id(target_user_id)
    if target is None:
        raise ResourceNotFound(detail="User not found")

    messages = await MessageRepository(db).find_between(
        current_user.id, target.id, page=page, limit=limit
    )
    return ChatHistoryResponse(
        messages=[_render_message(m) for m in messages],
        pagination=Pagination(page=page, limit=limit, has_more=len(messages) == limit)
    )


@router.get("/contacts", response_model=ContactsResponse, responses=get_error_responses("contacts"))
async def get_contacts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ContactsResponse:
    """Everyone the current user has exchanged messages with, most recent first."""
    entries = await MessageRepository(db).list_contacts(current_user.id)
    return ContactsResponse(contacts=[_render_contact(entry) for entry in entries])
