"""
Tests for bearer access token authentication shared by HTTP routes and the
websocket handshake.
"""

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from vtype.core.auth import authenticate_access_token, get_password_hash, verify_password
from vtype.core.exceptions import ErrorCode, StoreUnavailable, VTypeException
from vtype.core.tokens import TokenKind
from vtype.services.user.directory import UserDirectory


async def _reason(token, token_store, db_session) -> ErrorCode:
    with pytest.raises(VTypeException) as exc_info:
        await authenticate_access_token(token, token_store, UserDirectory(db_session))
    return exc_info.value.code


@pytest.mark.unit
def test_password_hash_roundtrip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_valid_token_resolves_user(token_store, db_session, alice):
    token = token_store.create_token(alice.id, TokenKind.ACCESS)
    user = await authenticate_access_token(token, token_store, UserDirectory(db_session))
    assert user.id == alice.id


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_missing_token(token_store, db_session):
    assert await _reason(None, token_store, db_session) == ErrorCode.TOKEN_MISSING


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_blacklist_checked_before_signature(token_store, db_session, alice):
    token = token_store.create_token(alice.id, TokenKind.ACCESS)
    await token_store.blacklist_access_token(token)
    assert await _reason(token, token_store, db_session) == ErrorCode.TOKEN_REVOKED


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_expired_token(token_store, db_session, alice):
    token = token_store.create_token(alice.id, TokenKind.ACCESS, expires_delta=timedelta(seconds=-1))
    assert await _reason(token, token_store, db_session) == ErrorCode.TOKEN_EXPIRED


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_refresh_token_not_accepted(token_store, db_session, alice):
    token = token_store.create_token(alice.id, TokenKind.REFRESH)
    assert await _reason(token, token_store, db_session) == ErrorCode.INVALID_TOKEN


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_unknown_subject(token_store, db_session):
    token = token_store.create_token(uuid4(), TokenKind.ACCESS)
    assert await _reason(token, token_store, db_session) == ErrorCode.USER_NOT_FOUND


@pytest.mark.unit
@pytest.mark.database
@pytest.mark.asyncio
async def test_deactivated_user(token_store, db_session, make_user):
    carol = await make_user("carol", is_active=False)
    token = token_store.create_token(carol.id, TokenKind.ACCESS)
    assert await _reason(token, token_store, db_session) == ErrorCode.USER_DEACTIVATED


@pytest.mark.unit
@pytest.mark.redis
@pytest.mark.asyncio
async def test_store_outage_fails_closed_by_default(token_store, mock_redis, db_session, alice):
    mock_redis.exists = AsyncMock(side_effect=RedisConnectionError("down"))
    token = token_store.create_token(alice.id, TokenKind.ACCESS)

    with pytest.raises(StoreUnavailable) as exc_info:
        await authenticate_access_token(token, token_store, UserDirectory(db_session))
    assert exc_info.value.code == ErrorCode.STORE_UNAVAILABLE


@pytest.mark.unit
@pytest.mark.redis
@pytest.mark.asyncio
async def test_store_outage_tolerated_when_requested(token_store, mock_redis, db_session, alice):
    mock_redis.exists = AsyncMock(side_effect=RedisConnectionError("down"))
    token = token_store.create_token(alice.id, TokenKind.ACCESS)

    user = await authenticate_access_token(
        token, token_store, UserDirectory(db_session), tolerate_store_outage=True
    )
    assert user.id == alice.id


@pytest.mark.unit
@pytest.mark.redis
@pytest.mark.asyncio
async def test_store_outage_still_checks_expiry(token_store, mock_redis, db_session, alice):
    mock_redis.exists = AsyncMock(side_effect=RedisConnectionError("down"))
    token = token_store.create_token(alice.id, TokenKind.ACCESS, expires_delta=timedelta(seconds=-1))

    with pytest.raises(VTypeException) as exc_info:
        await authenticate_access_token(
            token, token_store, UserDirectory(db_session), tolerate_store_outage=True
        )
    assert exc_info.value.code == ErrorCode.TOKEN_EXPIRED
