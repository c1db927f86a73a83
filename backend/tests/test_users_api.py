"""Tests for the admin user directory endpoints."""
import pytest

from claimflow.services import matrix as matrix_svc

from conftest import auth_headers, claim_payload, make_user, set_level


@pytest.mark.asyncio
async def test_admin_lists_users(client, db, settings):
    admin = await make_user(db, "admin", role="admin")
    await make_user(db, "john")

    response = await client.get("/api/v1/users", headers=auth_headers(settings, admin))

    assert response.status_code == 200
    assert {u["username"] for u in response.json()} == {"admin", "john"}


@pytest.mark.asyncio
async def test_non_admin_cannot_use_user_directory(client, db, settings):
    john = await make_user(db, "john")
    headers = auth_headers(settings, john)

    assert (await client.get("/api/v1/users", headers=headers)).status_code == 403
    response = await client.post(
        "/api/v1/users",
        headers=headers,
        json={"name": "X", "username": "x", "email": "x@example.com", "password": "pw"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_user(client, db, settings):
    admin = await make_user(db, "admin", role="admin")

    response = await client.post(
        "/api/v1/users",
        headers=auth_headers(settings, admin),
        json={
            "name": "Sarah Manager",
            "username": "sarah",
            "email": "sarah@example.com",
            "password": "secret",
            "department": "Finance",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "sarah"
    assert body["role"] == "user"
    assert body["is_active"] is True
    assert "password" not in body

    login = await client.post("/api/v1/auth/login", data={"username": "sarah", "password": "secret"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_create_user_with_taken_username_returns_400(client, db, settings):
    admin = await make_user(db, "admin", role="admin")
    await make_user(db, "john")

    response = await client.post(
        "/api/v1/users",
        headers=auth_headers(settings, admin),
        json={"name": "John 2", "username": "john", "email": "john2@example.com", "password": "pw"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Username already taken"


@pytest.mark.asyncio
async def test_admin_activates_registered_user(client, db, settings):
    admin = await make_user(db, "admin", role="admin")
    newbie = await make_user(db, "newbie", is_active=False)

    response = await client.put(
        f"/api/v1/users/{newbie.id}",
        headers=auth_headers(settings, admin),
        json={"is_active": True, "department": "Finance"},
    )

    assert response.status_code == 200
    assert response.json()["is_active"] is True
    assert response.json()["department"] == "Finance"
    assert response.json()["username"] == "newbie"


@pytest.mark.asyncio
async def test_update_unknown_user_returns_404(client, db, settings):
    admin = await make_user(db, "admin", role="admin")

    response = await client.put(
        "/api/v1/users/00000000-0000-0000-0000-000000000000",
        headers=auth_headers(settings, admin),
        json={"name": "Ghost"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_removes_matrix_rows_and_owned_claims(client, db, settings):
    admin = await make_user(db, "admin", role="admin")
    sarah = await make_user(db, "sarah", department="Finance")
    await set_level(db, "Finance", sarah, 1)

    created = await client.post(
        "/api/v1/claims",
        headers=auth_headers(settings, sarah),
        json=claim_payload(department=""),
    )
    assert created.status_code == 201

    response = await client.delete(f"/api/v1/users/{sarah.id}", headers=auth_headers(settings, admin))

    assert response.status_code == 204
    assert await matrix_svc.list_entries(db, "Finance") == []
    listing = await client.get("/api/v1/claims", headers=auth_headers(settings, admin))
    assert listing.json()["total"] == 0
    assert (await client.get("/api/v1/users", headers=auth_headers(settings, admin))).json()[0]["username"] == "admin"
