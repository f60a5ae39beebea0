"""Google OAuth 2.0 helpers: consent URL, code exchange, token refresh.

Tokens are kept in runtime settings: the access token with its expiry
(epoch milliseconds) and the long-lived refresh token.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from crm.models.system_setting import (
    GOOGLE_ACCESS_TOKEN,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REFRESH_TOKEN,
    GOOGLE_TOKEN_EXPIRY,
)
from crm.services.errors import IntegrationNotConfigured, RemoteCallFailed
from crm.services.runtime_settings import SettingsProvider

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"

SCOPES = (
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/userinfo.email",
)

# Refresh this long before the recorded expiry
EXPIRY_SKEW_MS = 60_000


@dataclass
class GoogleCredentials:
    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str | None = None
    expires_at_ms: int | None = None

    @property
    def needs_refresh(self) -> bool:
        if not self.access_token:
            return True
        if self.expires_at_ms is None:
            return False
        return time.time() * 1000 >= self.expires_at_ms - EXPIRY_SKEW_MS


async def load_credentials(settings: SettingsProvider) -> GoogleCredentials:
    client_id = await settings.get(GOOGLE_CLIENT_ID)
    client_secret = await settings.get(GOOGLE_CLIENT_SECRET)
    refresh_token = await settings.get(GOOGLE_REFRESH_TOKEN)
    if not client_id or not client_secret or not refresh_token:
        raise IntegrationNotConfigured(
            "Google Integration not configured. Please visit Settings."
        )

    expiry = await settings.get(GOOGLE_TOKEN_EXPIRY)
    return GoogleCredentials(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=refresh_token,
        access_token=await settings.get(GOOGLE_ACCESS_TOKEN),
        expires_at_ms=int(expiry) if expiry and expiry.isdigit() else None,
    )


def build_authorization_url(client_id: str, redirect_uri: str) -> str:
    """Consent screen URL. ``prompt=consent`` forces a refresh token every time."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(SCOPES),
        "access_type": "offline",
        "prompt": "consent",
    }
    return f"{AUTH_URL}?{urlencode(params)}"


async def exchange_code(
    http: httpx.AsyncClient,
    settings: SettingsProvider,
    code: str,
    redirect_uri: str,
) -> None:
    """Swap an authorization code for tokens and store them."""
    client_id = await settings.get(GOOGLE_CLIENT_ID)
    client_secret = await settings.get(GOOGLE_CLIENT_SECRET)
    if not client_id or not client_secret:
        raise IntegrationNotConfigured(
            "Missing Google Client configuration. Please visit Settings."
        )

    tokens = await _post_token(http, {
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
    })
    await save_tokens(settings, tokens)
    logger.info("Google account connected")


async def refresh_access_token(
    http: httpx.AsyncClient,
    settings: SettingsProvider,
    creds: GoogleCredentials,
) -> GoogleCredentials:
    """Mint a new access token from the refresh token and persist it."""
    tokens = await _post_token(http, {
        "client_id": creds.client_id,
        "client_secret": creds.client_secret,
        "refresh_token": creds.refresh_token,
        "grant_type": "refresh_token",
    })
    await save_tokens(settings, tokens)

    creds.access_token = tokens["access_token"]
    creds.expires_at_ms = _expiry_ms(tokens)
    if tokens.get("refresh_token"):
        creds.refresh_token = tokens["refresh_token"]
    logger.info("Refreshed Google access token")
    return creds


async def save_tokens(settings: SettingsProvider, tokens: dict) -> None:
    if tokens.get("access_token"):
        await settings.set(GOOGLE_ACCESS_TOKEN, tokens["access_token"])
    if tokens.get("refresh_token"):
        await settings.set(GOOGLE_REFRESH_TOKEN, tokens["refresh_token"])
    expiry = _expiry_ms(tokens)
    if expiry is not None:
        await settings.set(GOOGLE_TOKEN_EXPIRY, str(expiry))


def _expiry_ms(tokens: dict) -> int | None:
    expires_in = tokens.get("expires_in")
    if expires_in is None:
        return None
    return int(time.time() * 1000) + int(expires_in) * 1000


async def _post_token(http: httpx.AsyncClient, data: dict) -> dict:
    try:
        resp = await http.post(TOKEN_URL, data=data)
    except httpx.HTTPError as exc:
        raise RemoteCallFailed(
            f"Failed to authenticate with Google: {exc.__class__.__name__}"
        ) from exc

    if not resp.is_success:
        logger.warning("Google token endpoint returned %s: %s", resp.status_code, resp.text)
        raise RemoteCallFailed(
            "Failed to authenticate with Google. Please check Settings.",
            status_code=resp.status_code,
        )

    tokens = resp.json()
    if not tokens.get("access_token"):
        raise RemoteCallFailed("Google token response did not include an access token")
    return tokens
