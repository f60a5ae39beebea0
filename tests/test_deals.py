"""Tests for deals, comments and product line items."""

import pytest
from httpx import AsyncClient


async def _stage(client: AsyncClient, headers: dict, name: str = "Sales") -> tuple[str, list[str]]:
    resp = await client.post("/v1/pipelines", json={"name": name}, headers=headers)
    pipeline = resp.json()
    return pipeline["id"], [s["id"] for s in pipeline["stages"]]


async def _product(client: AsyncClient, headers: dict, name: str, price: float) -> str:
    resp = await client.post("/v1/products", json={"name": name, "default_price": price},
                             headers=headers)
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_create_requires_existing_stage(client: AsyncClient, manager_headers):
    resp = await client.post("/v1/deals", json={
        "title": "Ghost", "stage_id": "00000000-0000-0000-0000-000000000000",
    }, headers=manager_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_line_items_drive_amount(client: AsyncClient, manager_headers):
    _, (stage_id, _) = await _stage(client, manager_headers)
    resp = await client.post("/v1/deals", json={"title": "Fit-out", "stage_id": stage_id},
                             headers=manager_headers)
    deal_id = resp.json()["id"]

    chair = await _product(client, manager_headers, "Chair", 19.99)
    lamp = await _product(client, manager_headers, "Lamp", 12.0)

    resp = await client.post(f"/v1/deals/{deal_id}/products", json={
        "product_id": chair, "quantity": 2,
    }, headers=manager_headers)
    assert resp.status_code == 201
    line = resp.json()
    assert line["price_at_sale"] == 19.99
    assert line["line_total"] == 39.98

    resp = await client.post(f"/v1/deals/{deal_id}/products", json={
        "product_id": lamp, "quantity": 1, "price_at_sale": 5,
    }, headers=manager_headers)
    lamp_line = resp.json()

    detail = (await client.get(f"/v1/deals/{deal_id}", headers=manager_headers)).json()
    assert detail["amount"] == 44.98
    assert [p["product_name"] for p in detail["products"]] == ["Chair", "Lamp"]

    resp = await client.patch(f"/v1/deal-products/{line['id']}", json={"quantity": 3},
                              headers=manager_headers)
    assert resp.json()["line_total"] == 59.97
    detail = (await client.get(f"/v1/deals/{deal_id}", headers=manager_headers)).json()
    assert detail["amount"] == 64.97

    resp = await client.delete(f"/v1/deal-products/{lamp_line['id']}", headers=manager_headers)
    assert resp.status_code == 204
    detail = (await client.get(f"/v1/deals/{deal_id}", headers=manager_headers)).json()
    assert detail["amount"] == 59.97
    assert len(detail["products"]) == 1


@pytest.mark.asyncio
async def test_detail_includes_counterparty_and_comments(client: AsyncClient, manager_headers):
    _, (stage_id, _) = await _stage(client, manager_headers)
    resp = await client.post("/v1/counterparties", json={"name": "Acme LLC", "tax_id": "123"},
                             headers=manager_headers)
    cp_id = resp.json()["id"]

    resp = await client.post("/v1/deals", json={
        "title": "Supply", "stage_id": stage_id, "counterparty_id": cp_id,
        "document_number": "2024-001",
    }, headers=manager_headers)
    deal_id = resp.json()["id"]

    resp = await client.post(f"/v1/deals/{deal_id}/comments", json={"content": "Called them"},
                             headers=manager_headers)
    assert resp.status_code == 201

    detail = (await client.get(f"/v1/deals/{deal_id}", headers=manager_headers)).json()
    assert detail["counterparty"]["name"] == "Acme LLC"
    assert detail["document_number"] == "2024-001"
    assert [c["content"] for c in detail["comments"]] == ["Called them"]


@pytest.mark.asyncio
async def test_move_stage_and_filter_by_pipeline(client: AsyncClient, manager_headers):
    pipeline_a, (new_a, won_a) = await _stage(client, manager_headers, "A")
    pipeline_b, (new_b, _) = await _stage(client, manager_headers, "B")

    resp = await client.post("/v1/deals", json={"title": "A deal", "stage_id": new_a},
                             headers=manager_headers)
    deal_id = resp.json()["id"]
    await client.post("/v1/deals", json={"title": "B deal", "stage_id": new_b},
                      headers=manager_headers)

    resp = await client.patch(f"/v1/deals/{deal_id}/stage", json={"stage_id": won_a},
                              headers=manager_headers)
    assert resp.json()["stage_id"] == won_a

    resp = await client.get("/v1/deals", params={"pipeline_id": pipeline_a},
                            headers=manager_headers)
    assert [d["title"] for d in resp.json()] == ["A deal"]
    resp = await client.get("/v1/deals", headers=manager_headers)
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_update_and_delete(client: AsyncClient, manager_headers):
    _, (stage_id, _) = await _stage(client, manager_headers)
    resp = await client.post("/v1/deals", json={"title": "Old", "stage_id": stage_id},
                             headers=manager_headers)
    deal_id = resp.json()["id"]
    product = await _product(client, manager_headers, "Desk", 100)
    await client.post(f"/v1/deals/{deal_id}/products", json={"product_id": product},
                      headers=manager_headers)
    await client.post(f"/v1/deals/{deal_id}/comments", json={"content": "note"},
                      headers=manager_headers)

    resp = await client.patch(f"/v1/deals/{deal_id}", json={"title": "New", "status": "won"},
                              headers=manager_headers)
    assert resp.json()["title"] == "New"
    assert resp.json()["status"] == "won"

    resp = await client.delete(f"/v1/deals/{deal_id}", headers=manager_headers)
    assert resp.status_code == 204
    resp = await client.get(f"/v1/deals/{deal_id}", headers=manager_headers)
    assert resp.status_code == 404

    # The product is free to delete once no deal uses it
    resp = await client.delete(f"/v1/products/{product}", headers=manager_headers)
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_patch_null_keeps_title_and_detaches_counterparty(client: AsyncClient, manager_headers):
    _, (stage_id, _) = await _stage(client, manager_headers)
    resp = await client.post("/v1/counterparties", json={"name": "Acme"}, headers=manager_headers)
    cp_id = resp.json()["id"]
    resp = await client.post("/v1/deals", json={
        "title": "Chairs", "stage_id": stage_id, "counterparty_id": cp_id,
    }, headers=manager_headers)
    deal_id = resp.json()["id"]

    resp = await client.patch(f"/v1/deals/{deal_id}", json={
        "title": None, "status": None, "counterparty_id": None,
    }, headers=manager_headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Chairs"
    assert resp.json()["status"] == "open"
    assert resp.json()["counterparty_id"] is None
