"""
Tests for durable message storage and conversation queries.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from vtype.models import Message, MessageType
from vtype.services.chat.message_store import MessageRepository


async def _seed(db_session, sender, receiver, count, start=None):
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(count):
        db_session.add(Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            content=f"{sender.username}-{i}",
            message_type=MessageType.TEXT,
            is_read=False,
            created_at=start + timedelta(minutes=i)
        ))
    await db_session.commit()


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_insert_assigns_id_and_defaults(db_session, alice, bob):
    message = await MessageRepository(db_session).insert(alice.id, bob.id, "hi")
    assert message.id is not None
    assert message.is_read is False
    assert message.read_at is None
    assert message.message_type == MessageType.TEXT


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_history_pages_newest_first_each_page_oldest_first(db_session, alice, bob):
    await _seed(db_session, alice, bob, 5)
    repo = MessageRepository(db_session)

    first = await repo.find_between(alice.id, bob.id, page=1, limit=2)
    second = await repo.find_between(bob.id, alice.id, page=2, limit=2)
    third = await repo.find_between(alice.id, bob.id, page=3, limit=2)

    assert [m.content for m in first] == ["alice-3", "alice-4"]
    assert [m.content for m in second] == ["alice-1", "alice-2"]
    assert [m.content for m in third] == ["alice-0"]
    assert first[0].sender.username == "alice"


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_history_excludes_other_conversations(db_session, make_user, alice, bob):
    carol = await make_user("carol")
    await _seed(db_session, alice, bob, 1)
    await _seed(db_session, alice, carol, 2)

    messages = await MessageRepository(db_session).find_between(alice.id, bob.id)

    assert len(messages) == 1


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_mark_read_only_touches_one_direction(db_session, alice, bob):
    await _seed(db_session, alice, bob, 3)
    await _seed(db_session, bob, alice, 2)
    repo = MessageRepository(db_session)
    read_at = datetime.now(timezone.utc)

    assert await repo.update_many_read_status(alice.id, bob.id, read_at) == 3
    assert await repo.update_many_read_status(alice.id, bob.id, read_at) == 0

    result = await db_session.execute(
        select(Message.is_read).where(Message.sender_id == bob.id).execution_options(populate_existing=True)
    )
    assert result.scalars().all() == [False, False]


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_contacts_summarize_each_peer(db_session, make_user, alice, bob):
    carol = await make_user("carol")
    await _seed(db_session, bob, alice, 2, start=datetime(2024, 1, 1, tzinfo=timezone.utc))
    await _seed(db_session, alice, carol, 1, start=datetime(2024, 2, 1, tzinfo=timezone.utc))

    contacts = await MessageRepository(db_session).list_contacts(alice.id)

    assert [c["user"].username for c in contacts] == ["carol", "bob"]
    assert contacts[0]["unread_count"] == 0
    assert contacts[1]["unread_count"] == 2
    assert contacts[1]["last_message"].content == "bob-1"
