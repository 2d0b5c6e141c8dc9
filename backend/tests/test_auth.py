"""
Tests for authentication endpoints and bearer-token sessions.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import delete

from hotel_booking.models.user import UserSession


@pytest.mark.asyncio
async def test_sign_up(client: AsyncClient):
    """Successful sign-up returns user data."""
    response = await client.post("/users", json={
        "email": "new@example.com",
        "password": "securepassword123",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert "hashed_password" not in data  # Never expose password hash


@pytest.mark.asyncio
async def test_sign_up_duplicate_email(client: AsyncClient, test_user):
    """Duplicate email returns 409."""
    response = await client.post("/users", json={
        "email": test_user.email,
        "password": "securepassword123",
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_sign_up_weak_password(client: AsyncClient):
    """Password under 6 chars returns 422."""
    response = await client.post("/users", json={
        "email": "weak@example.com",
        "password": "short",
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_sign_in_success(client: AsyncClient, test_user):
    """Valid credentials return a token and the user."""
    response = await client.post("/auth/sign-in", json={
        "email": test_user.email,
        "password": "testpassword123",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["user"] == {"id": test_user.id, "email": test_user.email}
    assert data["token"]


@pytest.mark.asyncio
async def test_sign_in_wrong_password(client: AsyncClient, test_user):
    """Wrong password returns 401."""
    response = await client.post("/auth/sign-in", json={
        "email": test_user.email,
        "password": "wrongpassword",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_nonexistent_email(client: AsyncClient):
    """Non-existent email returns 401."""
    response = await client.post("/auth/sign-in", json={
        "email": "nobody@example.com",
        "password": "anypassword123",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_signed_in_token_opens_protected_routes(client: AsyncClient, test_user):
    response = await client.post("/auth/sign-in", json={
        "email": test_user.email,
        "password": "testpassword123",
    })
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    response = await client.get("/hotels", headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_token_rejected_after_session_removed(client: AsyncClient, db_session, auth_headers):
    """Deleting the session row revokes the token even though it still verifies."""
    assert (await client.get("/hotels", headers=auth_headers)).status_code == 200

    await db_session.execute(delete(UserSession))
    await db_session.commit()

    response = await client.get("/hotels", headers=auth_headers)
    assert response.status_code == 401
