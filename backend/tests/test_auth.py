"""
Tests for the identity adapter: registration and login.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from photomarket.core.security import Role, decode_identity
from photomarket.models import Client, Photographer
from tests.conftest import TEST_PASSWORD


@pytest.mark.asyncio
async def test_register_client_creates_profile(client: AsyncClient, db_session):
    """Registering as client also creates the Client profile."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "new@example.com",
        "password": "securepassword123",
        "name": "New Client",
        "role": "client",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "client"
    assert "hashed_password" not in data  # Never expose password hash

    profile = (await db_session.execute(select(Client).where(Client.user_id == data["id"]))).scalar_one()
    assert data["profile_id"] == profile.id


@pytest.mark.asyncio
async def test_register_photographer_creates_profile(client: AsyncClient, db_session):
    """Registering as photographer creates the Photographer profile."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "shooter@example.com",
        "password": "securepassword123",
        "name": "Shooter",
        "role": "photographer",
        "phone": "555-0100",
    })
    assert response.status_code == 201
    user_id = response.json()["id"]
    profile = (
        await db_session.execute(select(Photographer).where(Photographer.user_id == user_id))
    ).scalar_one()
    assert profile.phone == "555-0100"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, client_actor):
    """Duplicate email returns 409."""
    response = await client.post("/api/v1/auth/register", json={
        "email": client_actor.email,
        "password": "securepassword123",
        "name": "Someone Else",
        "role": "client",
    })
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.asyncio
async def test_register_admin_role_not_allowed(client: AsyncClient):
    """Admin accounts cannot be self-registered."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "sneaky@example.com",
        "password": "securepassword123",
        "name": "Sneaky",
        "role": "admin",
    })
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password under 8 chars returns 400."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "weak@example.com",
        "password": "short",
        "name": "Weak",
        "role": "client",
    })
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


@pytest.mark.asyncio
async def test_login_token_carries_role(client: AsyncClient, photographer_a):
    """Valid credentials return a token binding user id and role."""
    response = await client.post("/api/v1/auth/login", json={
        "email": photographer_a.email,
        "password": TEST_PASSWORD,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "photographer"

    identity = decode_identity(data["access_token"])
    assert identity.user_id == photographer_a.user_id
    assert identity.role is Role.PHOTOGRAPHER


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, client_actor):
    """Wrong password returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": client_actor.email,
        "password": "wrongpassword",
    })
    assert response.status_code == 401
    assert response.json()["kind"] == "auth_error"


@pytest.mark.asyncio
async def test_login_nonexistent_email(client: AsyncClient):
    """Non-existent email returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "nobody@example.com",
        "password": "anypassword123",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_tampered_token_rejected(client: AsyncClient, client_actor):
    """A token with a broken signature returns 401."""
    token = client_actor.headers["Authorization"] + "x"
    response = await client.post(
        "/api/v1/bookings/",
        json={"event_date": "2030-01-01T10:00:00Z"},
        headers={"Authorization": token},
    )
    assert response.status_code == 401
