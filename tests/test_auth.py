"""Tests for authentication and account self-service."""

import re

import pytest

from convops.models import UserRole, UserStatus
from tests.helpers import TEST_PASSWORD, auth_headers, make_user


def _reset_token(mailer) -> str:
    match = re.search(r"/reset-password/([0-9a-f]+)", mailer.outbox[-1]["html"])
    assert match, "reset link missing from e-mail"
    return match.group(1)


@pytest.mark.asyncio
async def test_login_returns_token_and_summary(client, admin):
    response = await client.post("/api/auth/login", json={"email": "ADMIN@test.com", "password": TEST_PASSWORD})
    assert response.status_code == 200

    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "admin@test.com"
    assert data["user"]["role"] == "super_admin"
    assert "hashed_password" not in data["user"]


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, admin):
    response = await client.post("/api/auth/login", json={"email": "admin@test.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_disabled_user_cannot_login_or_use_token(client, storage):
    user = await make_user(storage, "gone@test.com", UserRole.ADMIN, status=UserStatus.DISABLED)

    response = await client.post("/api/auth/login", json={"email": "gone@test.com", "password": TEST_PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "Account is deactivated"

    response = await client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Access denied. No token provided."


@pytest.mark.asyncio
async def test_me_returns_current_user(client, admin, admin_headers):
    response = await client.get("/api/auth/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["id"] == admin.id


@pytest.mark.asyncio
async def test_register_creates_unlinked_viewer(client, storage):
    response = await client.post(
        "/api/auth/register",
        json={"first_name": "New", "last_name": "Person", "email": "new@example.com", "password": "longenough"},
    )
    assert response.status_code == 201

    data = response.json()
    assert data["token"]
    assert data["user"]["role"] == "client_viewer"
    assert data["user"]["client_id"] is None

    duplicate = await client.post(
        "/api/auth/register",
        json={"first_name": "New", "last_name": "Person", "email": "NEW@example.com", "password": "longenough"},
    )
    assert duplicate.status_code == 400


@pytest.mark.asyncio
async def test_register_rejects_short_password(client):
    response = await client.post(
        "/api/auth/register",
        json={"first_name": "A", "last_name": "B", "email": "short@example.com", "password": "123"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_password_reset_flow(client, admin, mailer):
    response = await client.post("/api/auth/forgot-password", json={"email": "admin@test.com"})
    assert response.status_code == 200
    token = _reset_token(mailer)

    response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "brandnew1"})
    assert response.status_code == 200

    # Single use
    response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "another1"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired reset token."

    response = await client.post("/api/auth/login", json={"email": "admin@test.com", "password": "brandnew1"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_unknown_email(client, admin, mailer):
    known = await client.post("/api/auth/forgot-password", json={"email": "admin@test.com"})
    unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.json() == unknown.json()
    assert len(mailer.outbox) == 1


@pytest.mark.asyncio
async def test_expired_reset_token_rejected(client, storage, admin, mailer):
    await client.post("/api/auth/forgot-password", json={"email": "admin@test.com"})
    token = _reset_token(mailer)

    stored = await storage.get_user(admin.id)
    stored.reset_token_expiry = stored.created_at
    await storage.save_user(stored)

    response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "brandnew1"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_change_password(client, admin_headers):
    response = await client.put(
        "/api/auth/change-password",
        json={"current_password": "wrong", "new_password": "brandnew1"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = await client.put(
        "/api/auth/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "brandnew1"},
        headers=admin_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_profile_edit_limited_to_administrators(client, admin_headers, viewer_headers):
    response = await client.put("/api/auth/me", json={"first_name": "Renamed"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["first_name"] == "Renamed"

    response = await client.put("/api/auth/me", json={"first_name": "Nope"}, headers=viewer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_profile_edit_with_nothing_to_change(client, admin_headers):
    response = await client.put("/api/auth/me", json={"first_name": "  "}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "No valid changes to update"
