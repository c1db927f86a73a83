"""Tests for authentication and self-service account endpoints."""
import pytest
from sqlalchemy import select

from claimflow.models.user import User

from conftest import auth_headers, make_user, set_level


async def login(client, username: str, password: str = "password"):
    return await client.post("/api/v1/auth/login", data={"username": username, "password": password})


# ─── Login ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_valid_credentials_returns_jwt(client, db):
    await make_user(db, "john", department="IT")

    response = await login(client, "john")

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "john"
    assert "password_hash" not in data["user"]
    assert data["is_approver"] is False


@pytest.mark.asyncio
async def test_login_reports_approver_flag(client, db):
    sarah = await make_user(db, "sarah", department="Finance")
    await set_level(db, "Finance", sarah, 1)

    response = await login(client, "sarah")

    assert response.status_code == 200
    assert response.json()["is_approver"] is True


@pytest.mark.asyncio
async def test_login_wrong_password_returns_401(client, db):
    await make_user(db, "john")

    response = await login(client, "john", "wrongpassword")

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_user_returns_401(client):
    response = await login(client, "nobody")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_disabled_account_returns_403(client, db):
    await make_user(db, "newbie", is_active=False)

    response = await login(client, "newbie")

    assert response.status_code == 403
    assert "disabled" in response.json()["detail"]


@pytest.mark.asyncio
async def test_me_returns_current_user(client, db, settings):
    john = await make_user(db, "john", department="IT")

    response = await client.get("/api/v1/auth/me", headers=auth_headers(settings, john))

    assert response.status_code == 200
    assert response.json()["id"] == str(john.id)
    assert response.json()["department"] == "IT"


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


# ─── Register ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_register_creates_inactive_user_and_notifies(client, db, notifier):
    admin = await make_user(db, "admin", role="admin")

    response = await client.post(
        "/api/v1/auth/register",
        json={"name": "New Person", "email": "new.person@example.com", "department": "Finance"},
    )

    assert response.status_code == 200
    assert response.json()["success"] is True

    user = (await db.execute(select(User).where(User.email == "new.person@example.com"))).scalars().one()
    assert user.username == "new.person"
    assert user.is_active is False
    assert user.role == "user"
    assert user.department == "Finance"

    assert notifier.kinds_for(user.id) == ["account_created"]
    assert notifier.kinds_for(admin.id) == ["registration_pending"]

    # the emailed password works once an admin activates the account
    password = next(extra for kind, rid, extra in notifier.sent if kind == "account_created")
    assert (await login(client, "new.person", password)).status_code == 403


@pytest.mark.asyncio
async def test_register_duplicate_email_returns_400(client, db):
    await make_user(db, "john")

    response = await client.post(
        "/api/v1/auth/register",
        json={"name": "John Again", "email": "john@example.com"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_rejects_invalid_email(client):
    response = await client.post("/api/v1/auth/register", json={"name": "X", "email": "not-an-email"})
    assert response.status_code == 422


# ─── Forgot password ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_forgot_password_issues_new_password(client, db, notifier):
    john = await make_user(db, "john")

    response = await client.post("/api/v1/auth/forgot-password", json={"username": "john"})

    assert response.status_code == 200
    assert notifier.kinds_for(john.id) == ["password_reset"]
    new_password = notifier.sent[-1][2]
    assert (await login(client, "john")).status_code == 401
    assert (await login(client, "john", new_password)).status_code == 200


@pytest.mark.asyncio
async def test_forgot_password_unknown_user_looks_the_same(client, notifier):
    response = await client.post("/api/v1/auth/forgot-password", json={"username": "ghost"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_login_is_rate_limited(client, db):
    await make_user(db, "john")

    statuses = [(await login(client, "john", "wrong")).status_code for _ in range(11)]

    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429
