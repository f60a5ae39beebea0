"""Tests for counterparty and product CRUD."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_counterparty_crud(client: AsyncClient, manager_headers):
    resp = await client.post("/v1/counterparties", json={
        "type": "individual", "name": "Jo Doe", "email": "jo@example.com",
    }, headers=manager_headers)
    assert resp.status_code == 201
    cp = resp.json()
    assert cp["type"] == "individual"

    resp = await client.patch(f"/v1/counterparties/{cp['id']}", json={"phone": "+1 555 0100"},
                              headers=manager_headers)
    assert resp.json()["phone"] == "+1 555 0100"
    assert resp.json()["name"] == "Jo Doe"

    resp = await client.get("/v1/counterparties", headers=manager_headers)
    assert [c["name"] for c in resp.json()] == ["Jo Doe"]

    resp = await client.delete(f"/v1/counterparties/{cp['id']}", headers=manager_headers)
    assert resp.status_code == 204
    resp = await client.get(f"/v1/counterparties/{cp['id']}", headers=manager_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_counterparty_with_deals_is_kept(client: AsyncClient, manager_headers):
    resp = await client.post("/v1/counterparties", json={"name": "Acme"}, headers=manager_headers)
    cp_id = resp.json()["id"]
    resp = await client.post("/v1/pipelines", json={"name": "P"}, headers=manager_headers)
    stage_id = resp.json()["stages"][0]["id"]
    await client.post("/v1/deals", json={
        "title": "Deal", "stage_id": stage_id, "counterparty_id": cp_id,
    }, headers=manager_headers)

    resp = await client.get(f"/v1/counterparties/{cp_id}/deals", headers=manager_headers)
    assert [d["title"] for d in resp.json()] == ["Deal"]

    resp = await client.delete(f"/v1/counterparties/{cp_id}", headers=manager_headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_product_crud(client: AsyncClient, manager_headers):
    resp = await client.post("/v1/products", json={
        "name": "Chair", "sku": "CH-1", "default_price": 49.5,
    }, headers=manager_headers)
    assert resp.status_code == 201
    product = resp.json()

    resp = await client.patch(f"/v1/products/{product['id']}", json={"default_price": 55},
                              headers=manager_headers)
    assert resp.json()["default_price"] == 55

    resp = await client.post("/v1/products", json={"name": "Bad", "default_price": -1},
                             headers=manager_headers)
    assert resp.status_code == 422

    resp = await client.delete(f"/v1/products/{product['id']}", headers=manager_headers)
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_null_only_clears_optional_fields(client: AsyncClient, manager_headers):
    resp = await client.post("/v1/counterparties", json={
        "name": "Acme", "email": "ops@acme.test",
    }, headers=manager_headers)
    cp = resp.json()
    resp = await client.patch(f"/v1/counterparties/{cp['id']}", json={
        "name": None, "type": None, "email": None,
    }, headers=manager_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Acme"
    assert resp.json()["type"] == cp["type"]
    assert resp.json()["email"] is None

    resp = await client.post("/v1/products", json={"name": "Chair", "sku": "CH-1"},
                             headers=manager_headers)
    product = resp.json()
    resp = await client.patch(f"/v1/products/{product['id']}", json={
        "name": None, "default_price": None, "sku": None,
    }, headers=manager_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Chair"
    assert resp.json()["sku"] is None
