"""Generated documents: generate (preview), save, list, download, delete."""

import base64
import binascii
import re
import uuid
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel

from crm.api.deps import Auth, DocsClient, Session, SettingsStore
from crm.models.deal import Deal
from crm.models.document import GeneratedDocument, GeneratedDocumentCreate, GeneratedDocumentRead
from crm.services import document_store
from crm.services.document_generation import generate_document
from crm.services.google_docs import DOCX_MIME

router = APIRouter(tags=["documents"])


# ── Schemas ──────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    # Plain strings so unknown ids come back as a failed result, not a 422
    template_id: str


class GenerateResponse(BaseModel):
    """Discriminated on ``success``: file fields on success, ``error`` otherwise."""
    success: bool
    data: str | None = None
    filename: str | None = None
    external_document_id: str | None = None
    view_link: str | None = None
    error: str | None = None


# ── Routes ───────────────────────────────────────────────────

@router.post(
    "/deals/{deal_id}/documents/generate",
    response_model=GenerateResponse,
    response_model_exclude_none=True,
)
async def generate_deal_document(
    deal_id: str,
    body: GenerateRequest,
    auth: Auth,
    session: Session,
    settings_store: SettingsStore,
    client: DocsClient,
) -> GenerateResponse:
    """Fill a template with this deal's data. Nothing is saved locally."""
    result = await generate_document(
        session,
        body.template_id,
        deal_id,
        client=client,
        settings_provider=settings_store,
    )
    return GenerateResponse(**result.to_dict())


@router.post(
    "/deals/{deal_id}/documents",
    response_model=GeneratedDocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def save_deal_document(
    deal_id: uuid.UUID,
    body: GeneratedDocumentCreate,
    auth: Auth,
    session: Session,
) -> GeneratedDocumentRead:
    if await session.get(Deal, deal_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    _decode_or_422(body.content)
    if (
        body.template_id is not None
        and await document_store.get_template(session, body.template_id) is None
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Template not found",
        )

    doc = await document_store.save_generated_document(
        session,
        deal_id=deal_id,
        name=body.name,
        content_base64=body.content,
        template_id=body.template_id,
        external_document_id=body.external_document_id,
        view_link=body.view_link,
    )
    return GeneratedDocumentRead.model_validate(doc)


@router.get("/deals/{deal_id}/documents", response_model=list[GeneratedDocumentRead])
async def list_deal_documents(
    deal_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> list[GeneratedDocumentRead]:
    docs = await document_store.list_deal_documents(session, deal_id)
    return [GeneratedDocumentRead.model_validate(d) for d in docs]


@router.get("/documents/{document_id}/download")
async def download_document(
    document_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> Response:
    doc = await _get_or_404(document_id, session)
    filename = doc.name if doc.name.lower().endswith(".docx") else f"{doc.name}.docx"
    return Response(
        content=base64.b64decode(doc.content),
        media_type=DOCX_MIME,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    doc = await _get_or_404(document_id, session)
    await document_store.delete_generated_document(session, doc)


# ── Internal helpers ──────────────────────────────────────────

async def _get_or_404(document_id: uuid.UUID, session) -> GeneratedDocument:
    doc = await session.get(GeneratedDocument, document_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return doc


def _decode_or_422(content: str) -> bytes:
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="content must be base64-encoded",
        ) from exc


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback plus the RFC 5987 UTF-8 name."""
    ascii_name = re.sub(r"[^A-Za-z0-9._-]+", "_", filename).strip("_") or "document.docx"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"
