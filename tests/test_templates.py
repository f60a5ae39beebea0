"""Tests for the template store endpoints."""

import uuid

import pytest
from httpx import AsyncClient
from sqlmodel import select

from crm.core import cache
from crm.models.document import GeneratedDocument


async def _create(client: AsyncClient, headers: dict, name: str, doc_id: str = "gdoc-1", **extra):
    resp = await client.post("/v1/templates", json={
        "name": name, "external_document_id": doc_id, **extra,
    }, headers=headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_and_get(client: AsyncClient, admin_headers):
    created = await _create(client, admin_headers, "Contract", destination_folder_id="folder-1")
    assert created["destination_folder_id"] == "folder-1"

    resp = await client.get(f"/v1/templates/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["external_document_id"] == "gdoc-1"


@pytest.mark.asyncio
async def test_list_newest_first_and_cache_invalidated(client: AsyncClient, admin_headers):
    await _create(client, admin_headers, "First")
    resp = await client.get("/v1/templates", headers=admin_headers)
    assert [t["name"] for t in resp.json()] == ["First"]
    assert cache.get(cache.TEMPLATE_LIST_KEY) is not None

    await _create(client, admin_headers, "Second")
    resp = await client.get("/v1/templates", headers=admin_headers)
    assert [t["name"] for t in resp.json()] == ["Second", "First"]


@pytest.mark.asyncio
async def test_update_clears_blank_folder(client: AsyncClient, admin_headers):
    created = await _create(client, admin_headers, "Invoice", destination_folder_id="f-1")

    resp = await client.patch(f"/v1/templates/{created['id']}", json={
        "name": "Invoice v2", "destination_folder_id": "",
    }, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Invoice v2"
    assert resp.json()["destination_folder_id"] is None

    listed = await client.get("/v1/templates", headers=admin_headers)
    assert listed.json()[0]["name"] == "Invoice v2"


@pytest.mark.asyncio
async def test_update_ignores_null_for_required_fields(client: AsyncClient, admin_headers):
    created = await _create(client, admin_headers, "Invoice", doc_id="gdoc-9", destination_folder_id="f-1")

    resp = await client.patch(f"/v1/templates/{created['id']}", json={
        "name": None, "external_document_id": None, "destination_folder_id": None,
    }, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Invoice"
    assert body["external_document_id"] == "gdoc-9"
    assert body["destination_folder_id"] is None


@pytest.mark.asyncio
async def test_delete_keeps_saved_documents(client: AsyncClient, admin_headers, session):
    from crm.models.deal import Deal
    from crm.models.pipeline import Pipeline, Stage

    created = await _create(client, admin_headers, "Act")
    pipeline = Pipeline(name="P")
    session.add(pipeline)
    await session.flush()
    stage = Stage(pipeline_id=pipeline.id, name="New")
    session.add(stage)
    await session.flush()
    deal = Deal(stage_id=stage.id, title="D")
    session.add(deal)
    await session.flush()
    session.add(GeneratedDocument(
        deal_id=deal.id, template_id=uuid.UUID(created["id"]), name="Act_No_1.docx", content="UEs=",
    ))
    await session.commit()

    resp = await client.delete(f"/v1/templates/{created['id']}", headers=admin_headers)
    assert resp.status_code == 204

    resp = await client.get(f"/v1/templates/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404
    doc = (await session.execute(select(GeneratedDocument))).scalar_one()
    assert doc.template_id is None


@pytest.mark.asyncio
async def test_manager_can_read_but_not_write(client: AsyncClient, admin_headers, manager_headers):
    await _create(client, admin_headers, "Shared")

    resp = await client.get("/v1/templates", headers=manager_headers)
    assert resp.status_code == 200
    assert len(resp.json()) == 1

    resp = await client.post("/v1/templates", json={
        "name": "Nope", "external_document_id": "x",
    }, headers=manager_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_validation_and_missing(client: AsyncClient, admin_headers):
    resp = await client.post("/v1/templates", json={"name": "", "external_document_id": "x"},
                             headers=admin_headers)
    assert resp.status_code == 422

    resp = await client.get("/v1/templates/00000000-0000-0000-0000-000000000000",
                            headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_requires_auth(client: AsyncClient):
    resp = await client.get("/v1/templates")
    assert resp.status_code in (401, 403)
