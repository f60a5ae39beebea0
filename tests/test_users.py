"""Tests for users CRUD endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_and_list(client: AsyncClient, admin_headers):
    resp = await client.post("/v1/users", json={
        "email": "Sam@Example.com", "password": "memberpass1", "name": "Sam",
    }, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["email"] == "sam@example.com"
    assert resp.json()["role"] == "manager"

    resp = await client.get("/v1/users", headers=admin_headers)
    assert [u["email"] for u in resp.json()] == ["admin@example.com", "sam@example.com"]


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client: AsyncClient, admin_headers):
    user = {"email": "dup@example.com", "password": "password123"}
    assert (await client.post("/v1/users", json=user, headers=admin_headers)).status_code == 201
    assert (await client.post("/v1/users", json=user, headers=admin_headers)).status_code == 409


@pytest.mark.asyncio
async def test_manager_cannot_manage_users(client: AsyncClient, manager_headers):
    resp = await client.get("/v1/users", headers=manager_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_deactivated_user_cannot_log_in(client: AsyncClient, admin_headers, manager_user):
    resp = await client.delete(f"/v1/users/{manager_user.id}", headers=admin_headers)
    assert resp.status_code == 204

    resp = await client.post("/v1/auth/login", json={
        "email": "manager@example.com", "password": "password123",
    })
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cannot_deactivate_self(client: AsyncClient, admin_headers, admin_user):
    resp = await client.delete(f"/v1/users/{admin_user.id}", headers=admin_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_promote_and_reset_password(client: AsyncClient, admin_headers, manager_user):
    resp = await client.patch(f"/v1/users/{manager_user.id}", json={
        "role": "admin", "password": "brand-new-pass",
    }, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"

    resp = await client.post("/v1/auth/login", json={
        "email": "manager@example.com", "password": "brand-new-pass",
    })
    assert resp.status_code == 200
