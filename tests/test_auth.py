"""Tests for authentication endpoints."""

from datetime import datetime

import pytest
from sqlalchemy import select

from app.models.user import User
from app.scripts.seed_admin import create_or_update_admin
from app.services.auth import create_access_token, hash_password, verify_password

PASSWORD = "testpass123"


def test_password_hashing():
    """Password hashing should be one-way and verifiable."""
    password = "supersecret123"
    hashed = hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed) is True
    assert verify_password("wrongpassword", hashed) is False


@pytest.mark.asyncio
async def test_login_returns_token_and_user(client, admin_user):
    resp = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["access_token"]
    assert body["data"]["user"]["role"] == "super_admin"
    assert body["data"]["user"]["last_login_at"] is not None


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client, admin_user):
    resp = await client.post("/api/v1/auth/login", json={"email": "ADMIN@example.com", "password": PASSWORD})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(client, admin_user):
    resp = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "nope"})

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    resp = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_account_locks_after_five_failures(client, db, admin_user):
    """Five wrong passwords lock the account; even the right one is refused while locked."""
    for _ in range(5):
        resp = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "bad"})
        assert resp.status_code == 401

    resp = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    assert resp.status_code == 423
    assert resp.json()["error"]["code"] == "ACCOUNT_LOCKED"

    result = await db.execute(select(User).where(User.email == "admin@example.com"))
    user = result.scalar_one()
    await db.refresh(user)
    assert user.lock_until > datetime.utcnow()


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "TOKEN_REQUIRED"


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_token_for_deleted_user(client):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000", "role": "super_admin"})
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_current_user(client, editor_headers):
    resp = await client.get("/api/v1/auth/me", headers=editor_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] == "editor@example.com"
    assert data["role"] == "content_editor"
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_change_password(client, editor_headers):
    resp = await client.put(
        "/api/v1/auth/change-password",
        json={"current_password": "wrong-password", "new_password": "newpass123"},
        headers=editor_headers,
    )
    assert resp.status_code == 401

    resp = await client.put(
        "/api/v1/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "newpass123"},
        headers=editor_headers,
    )
    assert resp.status_code == 200

    resp = await client.post("/api/v1/auth/login", json={"email": "editor@example.com", "password": "newpass123"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_super_admin_creates_users(client, admin_headers):
    payload = {"email": "new.editor@example.com", "password": "longenough1", "name": "New Editor"}
    resp = await client.post("/api/v1/auth/users", json=payload, headers=admin_headers)

    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == "content_editor"

    resp = await client.post("/api/v1/auth/users", json=payload, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "EMAIL_EXISTS"


@pytest.mark.asyncio
async def test_editor_cannot_create_users(client, editor_headers):
    payload = {"email": "x@example.com", "password": "longenough1", "name": "Someone"}
    resp = await client.post("/api/v1/auth/users", json=payload, headers=editor_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_seed_script_creates_then_resets_account():
    user = await create_or_update_admin("root@example.com", "firstpass1")
    assert user.role == "super_admin"

    user = await create_or_update_admin("root@example.com", "secondpass2", role="content_editor")
    assert user.role == "content_editor"
    assert verify_password("secondpass2", user.hashed_password)
