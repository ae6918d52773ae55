"""
API tests for registration, login, token refresh and logout.
"""

import pytest

from vtype.core.tokens import BLACKLIST_PREFIX, REFRESH_TOKEN_PREFIX

from vtype.tests.config import TEST_PASSWORD

AUTH = "/api/v1/auth"


def _error(response) -> dict:
    return response.json()["error"]


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_register_returns_user_and_tokens(client, mock_redis):
    response = await client.post(f"{AUTH}/register", json={
        "username": "newbie",
        "email": "Newbie@Example.com",
        "password": "secret123"
    })

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["username"] == "newbie"
    assert body["user"]["email"] == "newbie@example.com"
    assert "createdAt" in body["user"]
    assert body["tokens"]["expiresIn"] == 900
    assert await mock_redis.get(f"{REFRESH_TOKEN_PREFIX}{body['user']['id']}") == body["tokens"]["refreshToken"]


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_register_duplicate_email(client, alice):
    response = await client.post(f"{AUTH}/register", json={
        "username": "other",
        "email": "alice@example.com",
        "password": "secret123"
    })
    assert response.status_code == 400
    assert _error(response)["message"] == "Email already registered"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"username": "ab", "email": "x@example.com", "password": "secret123"},
    {"username": "valid_name", "email": "not-an-email", "password": "secret123"},
    {"username": "valid_name", "email": "x@example.com", "password": "123"},
    {"username": "bad name!", "email": "x@example.com", "password": "secret123"},
])
async def test_register_validation(client, db_session, payload):
    response = await client.post(f"{AUTH}/register", json=payload)
    assert response.status_code == 422
    assert _error(response)["type"] == "ValidationError"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", [{"email": "alice@example.com"}, {"username": "alice"}])
async def test_login_with_email_or_username(client, alice, identifier):
    response = await client.post(f"{AUTH}/login", json={**identifier, "password": TEST_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == str(alice.id)
    assert body["user"]["lastLogin"] is not None
    assert body["tokens"]["accessToken"]


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_user_look_alike(client, alice):
    wrong = await client.post(f"{AUTH}/login", json={"username": "alice", "password": "nope!!"})
    unknown = await client.post(f"{AUTH}/login", json={"username": "ghost", "password": "nope!!"})

    for response in (wrong, unknown):
        assert response.status_code == 401
        assert _error(response)["code"] == "INVALID_CREDENTIALS"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_login_deactivated(client, make_user):
    await make_user("sleepy", is_active=False)
    response = await client.post(f"{AUTH}/login", json={"username": "sleepy", "password": TEST_PASSWORD})
    assert response.status_code == 401
    assert _error(response)["code"] == "USER_DEACTIVATED"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_login_requires_identifier(client, db_session):
    response = await client.post(f"{AUTH}/login", json={"password": TEST_PASSWORD})
    assert response.status_code == 422


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_second_login_invalidates_first_refresh_token(client, alice):
    first = (await client.post(f"{AUTH}/login", json={"username": "alice", "password": TEST_PASSWORD})).json()
    await client.post(f"{AUTH}/login", json={"username": "alice", "password": TEST_PASSWORD})

    response = await client.post(f"{AUTH}/refresh", json={"refreshToken": first["tokens"]["refreshToken"]})

    assert response.status_code == 401
    assert _error(response)["code"] == "INVALID_REFRESH_TOKEN"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_refresh_rotates_pair(client, alice, token_store, app):
    pair = await app.state.token_store.issue_and_store(alice.id)

    response = await client.post(f"{AUTH}/refresh", json={"refreshToken": pair.refresh_token})

    assert response.status_code == 200
    tokens = response.json()["tokens"]
    assert tokens["refreshToken"] != pair.refresh_token
    assert await app.state.token_store.fetch_refresh_token(alice.id) == tokens["refreshToken"]


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_refresh_without_token(client, db_session):
    response = await client.post(f"{AUTH}/refresh", json={})
    assert response.status_code == 401
    assert _error(response)["code"] == "TOKEN_MISSING"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_logout_revokes_both_tokens(client, alice, app, mock_redis):
    pair = await app.state.token_store.issue_and_store(alice.id)
    headers = {"Authorization": f"Bearer {pair.access_token}"}

    response = await client.post(f"{AUTH}/logout", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}
    assert await mock_redis.exists(f"{BLACKLIST_PREFIX}{pair.access_token}") == 1
    assert await mock_redis.get(f"{REFRESH_TOKEN_PREFIX}{alice.id}") is None

    again = await client.get(f"{AUTH}/me", headers=headers)
    assert again.status_code == 401
    assert _error(again)["code"] == "TOKEN_REVOKED"

    refreshed = await client.post(f"{AUTH}/refresh", json={"refreshToken": pair.refresh_token})
    assert _error(refreshed)["code"] == "INVALID_REFRESH_TOKEN"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_logout_all(client, alice, auth_headers):
    response = await client.post(f"{AUTH}/logout-all", headers=await auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out from all devices"


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_me(client, alice, auth_headers):
    response = await client.get(f"{AUTH}/me", headers=await auth_headers(alice))

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "alice"
    assert user["isActive"] is True
    assert "hashedPassword" not in user


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_me_without_token(client, db_session):
    response = await client.get(f"{AUTH}/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert _error(response)["code"] == "TOKEN_MISSING"
