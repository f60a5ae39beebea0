"""Tests for login, current-user lookup and role enforcement."""

import pytest
from httpx import AsyncClient

from crm.core.security import create_jwt


@pytest.mark.asyncio
async def test_login_and_me(client: AsyncClient, admin_user):
    resp = await client.post("/v1/auth/login", json={
        "email": "Admin@Example.com", "password": "password123",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"

    resp = await client.get("/v1/auth/me", headers={
        "Authorization": f"Bearer {data['access_token']}",
    })
    assert resp.status_code == 200
    assert resp.json()["email"] == "admin@example.com"


@pytest.mark.asyncio
async def test_wrong_password(client: AsyncClient, admin_user):
    resp = await client.post("/v1/auth/login", json={
        "email": "admin@example.com", "password": "wrong-password",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token(client: AsyncClient):
    resp = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_role_read_from_database(client: AsyncClient, manager_user):
    """A token claiming admin does not grant admin rights to a manager."""
    forged = create_jwt(str(manager_user.id), "admin")
    resp = await client.get("/v1/users", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_admin_script_is_idempotent(client: AsyncClient, test_session_factory,
                                                 monkeypatch):
    from crm.scripts import create_admin as script

    async def _no_init():
        return None

    monkeypatch.setattr(script, "init_db", _no_init)
    monkeypatch.setattr(script, "async_session_factory", test_session_factory)

    assert await script.create_admin("Boss@Example.com", "bosspass123") is True
    assert await script.create_admin("boss@example.com", "other-pass") is False

    resp = await client.post("/v1/auth/login", json={
        "email": "boss@example.com", "password": "bosspass123",
    })
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"
