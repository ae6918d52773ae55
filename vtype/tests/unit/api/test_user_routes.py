"""
API tests for profile management.
"""

import pytest

from vtype.tests.config import TEST_PASSWORD

USERS = "/api/v1/users"


@pytest.mark.api
@pytest.mark.asyncio
async def test_public_profile(client, alice, bob, auth_headers):
    response = await client.get(f"{USERS}/profile/{bob.id}", headers=await auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "bob"
    assert "email" not in body


@pytest.mark.api
@pytest.mark.asyncio
async def test_public_profile_not_found(client, alice, auth_headers):
    response = await client.get(f"{USERS}/profile/nobody", headers=await auth_headers(alice))
    assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
async def test_update_profile(client, alice, auth_headers):
    response = await client.put(
        f"{USERS}/profile",
        json={"bio": "hello there", "profilePicture": "https://cdn.example.com/a.png"},
        headers=await auth_headers(alice)
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["bio"] == "hello there"
    assert user["profilePicture"] == "https://cdn.example.com/a.png"


@pytest.mark.api
@pytest.mark.asyncio
async def test_update_profile_taken_username(client, alice, bob, auth_headers):
    response = await client.put(
        f"{USERS}/profile", json={"username": "bob"}, headers=await auth_headers(alice)
    )
    assert response.status_code == 400


@pytest.mark.api
@pytest.mark.asyncio
async def test_search(client, make_user, alice, auth_headers):
    await make_user("alfred")
    await make_user("zed")

    response = await client.get(f"{USERS}/search", params={"q": "al"}, headers=await auth_headers(alice))

    assert [u["username"] for u in response.json()["users"]] == ["alfred"]


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_change_password_signs_out(client, alice, auth_headers):
    headers = await auth_headers(alice)

    wrong = await client.put(
        f"{USERS}/change-password",
        json={"currentPassword": "wrong-one", "newPassword": "brand-new"},
        headers=headers
    )
    assert wrong.status_code == 401

    response = await client.put(
        f"{USERS}/change-password",
        json={"currentPassword": TEST_PASSWORD, "newPassword": "brand-new"},
        headers=headers
    )
    assert response.status_code == 200

    assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401
    login = await client.post("/api/v1/auth/login", json={"username": "alice", "password": "brand-new"})
    assert login.status_code == 200


@pytest.mark.api
@pytest.mark.auth
@pytest.mark.asyncio
async def test_deactivate_then_reactivate(client, alice, auth_headers):
    headers = await auth_headers(alice)

    response = await client.put(f"{USERS}/deactivate", headers=headers)
    assert response.status_code == 200

    login = await client.post("/api/v1/auth/login", json={"username": "alice", "password": TEST_PASSWORD})
    assert login.json()["error"]["code"] == "USER_DEACTIVATED"

    reactivated = await client.put(
        f"{USERS}/reactivate", json={"username": "alice", "password": TEST_PASSWORD}
    )
    assert reactivated.status_code == 200

    again = await client.put(
        f"{USERS}/reactivate", json={"username": "alice", "password": TEST_PASSWORD}
    )
    assert again.status_code == 400
