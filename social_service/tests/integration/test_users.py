# social_service/tests/integration/test_users.py
import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_read_users(client: AsyncClient, auth_header, test_user2):
    response = await client.get("/api/v1/users/", headers=auth_header)
    assert response.status_code == 200
    usernames = [user["username"] for user in response.json()]
    assert test_user2.username in usernames


async def test_read_users_filtered(client: AsyncClient, auth_header, test_user, test_user2):
    response = await client.get(
        "/api/v1/users/", params={"username": test_user2.username}, headers=auth_header
    )
    assert [user["id"] for user in response.json()] == [test_user2.id]


async def test_read_users_me(client: AsyncClient, auth_header, test_user):
    response = await client.get("/api/v1/users/me", headers=auth_header)
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == test_user.username
    assert body["fullName"] == "Test User"
    assert "createdAt" in body


async def test_update_user_me(client: AsyncClient, auth_header):
    response = await client.put(
        "/api/v1/users/me",
        json={"city": "Nairobi", "autoDeleteChat": "30d", "fcmToken": "device-abc"},
        headers=auth_header,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["city"] == "Nairobi"
    assert body["autoDeleteChat"] == "30d"


async def test_update_rejects_unknown_policy(client: AsyncClient, auth_header):
    response = await client.put(
        "/api/v1/users/me", json={"autoDeleteChat": "2h"}, headers=auth_header
    )
    assert response.status_code == 400


async def test_search_users(client: AsyncClient, auth_header, test_user, test_user2):
    response = await client.get(
        "/api/v1/users/search", params={"query": "testuser2"}, headers=auth_header
    )
    assert response.status_code == 200
    ids = [user["id"] for user in response.json()]
    assert ids == [test_user2.id]


async def test_online_users(client: AsyncClient, app, auth_header, test_user2):
    await app.state.presence.register(test_user2.id, "conn-x")

    response = await client.get("/api/v1/users/online", headers=auth_header)

    assert response.status_code == 200
    assert response.json() == {"userIds": [test_user2.id]}


async def test_delete_user_me(client: AsyncClient, make_user):
    doomed = await make_user("doomed")
    login = await client.post(
        "/api/v1/auth/login", data={"username": doomed.username, "password": "testpassword"}
    )
    header = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = await client.delete("/api/v1/users/me", headers=header)
    assert response.status_code == 204

    response = await client.get("/api/v1/users/me", headers=header)
    assert response.status_code == 401
