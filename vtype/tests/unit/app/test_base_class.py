"""
Unit tests for the shared model base.

These tests verify:
- Model serialization (model_dump)
- Model attribute updates
- String representation
"""

import datetime
import uuid

import pytest

from vtype.models import Message, MessageType, User


@pytest.fixture
def message() -> Message:
    return Message(
        id=42,
        sender_id=uuid.UUID("00000000-0000-0000-0000-000000000001"),
        receiver_id=uuid.UUID("00000000-0000-0000-0000-000000000002"),
        content="hello",
        message_type=MessageType.IMAGE,
        is_read=False,
        read_at=None,
        created_at=datetime.datetime(2024, 1, 1, 12, 0, 0)
    )


@pytest.mark.unit
def test_model_dump_is_json_friendly(message):
    data = message.model_dump()

    assert data == {
        "id": 42,
        "sender_id": "00000000-0000-0000-0000-000000000001",
        "receiver_id": "00000000-0000-0000-0000-000000000002",
        "content": "hello",
        "message_type": "image",
        "is_read": False,
        "read_at": None,
        "created_at": "2024-01-01T12:00:00",
    }


@pytest.mark.unit
def test_model_dump_exclude():
    user = User(id=uuid.uuid4(), username="alice", email="a@example.com", hashed_password="x")
    data = user.model_dump(exclude={"hashed_password"})
    assert "hashed_password" not in data
    assert data["username"] == "alice"


@pytest.mark.unit
def test_update_ignores_unknown_attributes(message):
    message.update(content="edited", not_a_column="ignored")
    assert message.content == "edited"
    assert not hasattr(message, "not_a_column")


@pytest.mark.unit
def test_repr_shows_primary_key(message):
    assert repr(message) == "<Message(id=42)>"


@pytest.mark.unit
def test_explicit_table_names():
    assert User.__tablename__ == "users"
    assert Message.__tablename__ == "messages"
