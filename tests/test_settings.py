"""Tests for runtime settings: masking, encryption at rest, admin-only access."""

import pytest
from httpx import AsyncClient

from crm.models.system_setting import (
    GOOGLE_CLIENT_SECRET,
    GOOGLE_DRIVE_FOLDER_ID,
    MASKED_VALUE,
    SystemSetting,
)
from crm.services.runtime_settings import DbSettingsProvider


@pytest.mark.asyncio
async def test_secret_is_masked_and_encrypted(client: AsyncClient, admin_headers, session):
    resp = await client.put(f"/v1/settings/{GOOGLE_CLIENT_SECRET}", json={"value": "s3cret"},
                            headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["value"] == MASKED_VALUE
    assert resp.json()["is_secret"] is True

    row = await session.get(SystemSetting, GOOGLE_CLIENT_SECRET)
    assert row.value != "s3cret"
    assert await DbSettingsProvider(session).get(GOOGLE_CLIENT_SECRET) == "s3cret"


@pytest.mark.asyncio
async def test_echoed_mask_keeps_secret(client: AsyncClient, admin_headers, session):
    await client.put(f"/v1/settings/{GOOGLE_CLIENT_SECRET}", json={"value": "keep-me"},
                     headers=admin_headers)
    resp = await client.put(f"/v1/settings/{GOOGLE_CLIENT_SECRET}", json={"value": MASKED_VALUE},
                            headers=admin_headers)
    assert resp.status_code == 200
    assert await DbSettingsProvider(session).get(GOOGLE_CLIENT_SECRET) == "keep-me"


@pytest.mark.asyncio
async def test_plain_setting_round_trip(client: AsyncClient, admin_headers, session):
    resp = await client.put(f"/v1/settings/{GOOGLE_DRIVE_FOLDER_ID}", json={"value": " folder-1 "},
                            headers=admin_headers)
    assert resp.json()["value"] == "folder-1"

    resp = await client.get("/v1/settings", headers=admin_headers)
    assert {s["key"]: s["value"] for s in resp.json()} == {GOOGLE_DRIVE_FOLDER_ID: "folder-1"}

    # Blank values read as unset
    await client.put(f"/v1/settings/{GOOGLE_DRIVE_FOLDER_ID}", json={"value": ""},
                     headers=admin_headers)
    assert await DbSettingsProvider(session).get(GOOGLE_DRIVE_FOLDER_ID) is None


@pytest.mark.asyncio
async def test_unknown_setting(client: AsyncClient, admin_headers):
    resp = await client.get("/v1/settings/NOPE", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_managers_cannot_touch_settings(client: AsyncClient, manager_headers):
    resp = await client.get("/v1/settings", headers=manager_headers)
    assert resp.status_code == 403
    resp = await client.put(f"/v1/settings/{GOOGLE_DRIVE_FOLDER_ID}", json={"value": "x"},
                            headers=manager_headers)
    assert resp.status_code == 403
