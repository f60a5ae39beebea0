"""Google account connection: OAuth consent, callback, and status."""

import httpx
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from crm.api.deps import AdminAuth, SettingsStore
from crm.core.config import get_settings
from crm.models.system_setting import (
    GOOGLE_ACCESS_TOKEN,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REFRESH_TOKEN,
)
from crm.services.errors import GenerationError
from crm.services.google_oauth import build_authorization_url, exchange_code

router = APIRouter(prefix="/integrations/google", tags=["integrations"])

settings = get_settings()


class AuthorizeResponse(BaseModel):
    authorization_url: str


class IntegrationStatus(BaseModel):
    configured: bool
    connected: bool


@router.get("/authorize", response_model=AuthorizeResponse)
async def authorize(auth: AdminAuth, settings_store: SettingsStore) -> AuthorizeResponse:
    """Return the Google consent URL the admin should open."""
    client_id = await settings_store.get(GOOGLE_CLIENT_ID)
    client_secret = await settings_store.get(GOOGLE_CLIENT_SECRET)
    if not client_id or not client_secret:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Google Client configuration. Please visit Settings.",
        )
    return AuthorizeResponse(
        authorization_url=build_authorization_url(client_id, settings.google_oauth_redirect_uri),
    )


@router.get("/callback", response_model=IntegrationStatus)
async def callback(
    settings_store: SettingsStore,
    code: str | None = None,
    error: str | None = None,
) -> IntegrationStatus:
    """OAuth redirect target. Google calls this without our bearer token."""
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing code")

    async with httpx.AsyncClient(timeout=settings.google_api_timeout_seconds) as http:
        try:
            await exchange_code(http, settings_store, code, settings.google_oauth_redirect_uri)
        except GenerationError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc

    return await _status(settings_store)


@router.get("/status", response_model=IntegrationStatus)
async def integration_status(auth: AdminAuth, settings_store: SettingsStore) -> IntegrationStatus:
    return await _status(settings_store)


async def _status(settings_store) -> IntegrationStatus:
    configured = bool(
        await settings_store.get(GOOGLE_CLIENT_ID)
        and await settings_store.get(GOOGLE_CLIENT_SECRET)
    )
    connected = bool(
        await settings_store.get(GOOGLE_REFRESH_TOKEN)
        or await settings_store.get(GOOGLE_ACCESS_TOKEN)
    )
    return IntegrationStatus(configured=configured, connected=connected)
