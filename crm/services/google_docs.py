"""Google Docs / Drive client: the only boundary the document pipeline talks to.

A thin wrapper over the Drive v3 and Docs v1 REST endpoints. Every call is
bounded by ``google_api_timeout_seconds``; timeouts, transport errors and
non-2xx responses surface as ``RemoteCallFailed`` (or one of its subclasses).
Nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from crm.core.config import get_settings
from crm.services.doc_structure import RemoteDocument
from crm.services.errors import (
    QuotaExceeded,
    RemoteAccessDenied,
    RemoteCallFailed,
    RemoteNotFound,
)
from crm.services.google_oauth import (
    GoogleCredentials,
    load_credentials,
    refresh_access_token,
)
from crm.services.runtime_settings import SettingsProvider

logger = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
DOCS_API = "https://docs.googleapis.com/v1"

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocumentClient(Protocol):
    """Remote operations the generation pipeline depends on."""

    async def copy(
        self, source_id: str, new_name: str, dest_folder_id: str | None = None,
    ) -> str: ...

    async def batch_update(self, document_id: str, requests: list[dict]) -> list[dict]: ...

    async def get_document(self, document_id: str) -> RemoteDocument: ...

    async def export_as(self, document_id: str, mime_type: str = DOCX_MIME) -> bytes: ...

    async def grant_public_read(self, document_id: str) -> str: ...


class GoogleDocsClient:
    """Authenticated Docs/Drive client bound to the stored OAuth tokens."""

    def __init__(
        self,
        settings_provider: SettingsProvider,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings_provider = settings_provider
        self.timeout = timeout or get_settings().google_api_timeout_seconds
        self._http = httpx.AsyncClient(timeout=self.timeout, transport=transport)
        self._creds: GoogleCredentials | None = None

    async def __aenter__(self) -> GoogleDocsClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Drive ────────────────────────────────────────────────

    async def copy(
        self,
        source_id: str,
        new_name: str,
        dest_folder_id: str | None = None,
    ) -> str:
        """Copy a Drive file and return the new file id."""
        # Metadata read first so a bad id fails with 404 rather than a copy error
        await self._request(
            "GET",
            f"{DRIVE_API}/files/{source_id}",
            params={"fields": "id,name,mimeType", "supportsAllDrives": "true"},
        )

        body: dict = {"name": new_name}
        if dest_folder_id:
            body["parents"] = [dest_folder_id]

        resp = await self._request(
            "POST",
            f"{DRIVE_API}/files/{source_id}/copy",
            params={"supportsAllDrives": "true"},
            json=body,
        )
        new_id = resp.json().get("id")
        if not new_id:
            raise RemoteCallFailed("Failed to create document copy")
        return new_id

    async def export_as(self, document_id: str, mime_type: str = DOCX_MIME) -> bytes:
        resp = await self._request(
            "GET",
            f"{DRIVE_API}/files/{document_id}/export",
            params={"mimeType": mime_type},
        )
        return resp.content

    async def grant_public_read(self, document_id: str) -> str:
        """Make the file readable by anyone with the link; return that link."""
        await self._request(
            "POST",
            f"{DRIVE_API}/files/{document_id}/permissions",
            params={"supportsAllDrives": "true"},
            json={"role": "reader", "type": "anyone"},
        )
        resp = await self._request(
            "GET",
            f"{DRIVE_API}/files/{document_id}",
            params={"fields": "webViewLink", "supportsAllDrives": "true"},
        )
        return resp.json().get("webViewLink", "")

    # ── Docs ─────────────────────────────────────────────────

    async def get_document(self, document_id: str) -> RemoteDocument:
        resp = await self._request("GET", f"{DOCS_API}/documents/{document_id}")
        return RemoteDocument.model_validate(resp.json())

    async def batch_update(self, document_id: str, requests: list[dict]) -> list[dict]:
        """Apply ``requests`` atomically. Returns the per-request replies."""
        resp = await self._request(
            "POST",
            f"{DOCS_API}/documents/{document_id}:batchUpdate",
            json={"requests": requests},
        )
        return resp.json().get("replies", [])

    # ── Internals ────────────────────────────────────────────

    async def _access_token(self) -> str:
        if self._creds is None:
            self._creds = await load_credentials(self.settings_provider)
        if self._creds.needs_refresh:
            self._creds = await refresh_access_token(
                self._http, self.settings_provider, self._creds,
            )
        return self._creds.access_token  # type: ignore[return-value]

    async def _request(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        token = await self._access_token()
        try:
            resp = await self._http.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TimeoutException as exc:
            raise RemoteCallFailed(
                f"Google API call timed out after {self.timeout:g}s ({method} {url})"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteCallFailed(
                f"Google API call failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        raise_for_google_error(resp)
        return resp


def raise_for_google_error(resp: httpx.Response) -> None:
    """Translate a Google API error response into the pipeline's exceptions."""
    if resp.is_success:
        return

    message, reason = _error_details(resp)
    code = resp.status_code
    logger.warning("Google API %s: %s (%s)", code, message, reason)

    if code == 404:
        raise RemoteNotFound(message, status_code=code, reason=reason)
    if code == 403:
        lowered = f"{message} {reason or ''}".lower()
        if "quota" in lowered or "storage" in lowered:
            raise QuotaExceeded(message, status_code=code, reason=reason)
        raise RemoteAccessDenied(message, status_code=code, reason=reason)
    raise RemoteCallFailed(message, status_code=code, reason=reason)


def _error_details(resp: httpx.Response) -> tuple[str, str | None]:
    """Pull ``error.message`` and the first ``errors[].reason`` from the body."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}", None

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return str(error or f"HTTP {resp.status_code}"), None

    message = error.get("message") or f"HTTP {resp.status_code}"
    reasons = [e.get("reason") for e in error.get("errors", []) if e.get("reason")]
    return message, reasons[0] if reasons else error.get("status")
