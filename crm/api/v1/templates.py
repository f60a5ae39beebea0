"""Document template CRUD: reads for everyone, writes for admins."""

import uuid

from fastapi import APIRouter, HTTPException, status

from crm.api.deps import AdminAuth, Auth, Session
from crm.models.document import DocumentTemplate, TemplateCreate, TemplateRead, TemplateUpdate
from crm.services import document_store

router = APIRouter(prefix="/templates", tags=["templates"])


@router.post("", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
    body: TemplateCreate,
    auth: AdminAuth,
    session: Session,
) -> TemplateRead:
    template = await document_store.create_template(session, body)
    return TemplateRead.model_validate(template)


@router.get("", response_model=list[TemplateRead])
async def list_templates(
    auth: Auth,
    session: Session,
) -> list[TemplateRead]:
    return await document_store.list_templates(session)


@router.get("/{template_id}", response_model=TemplateRead)
async def get_template(
    template_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> TemplateRead:
    template = await _get_or_404(template_id, session)
    return TemplateRead.model_validate(template)


@router.patch("/{template_id}", response_model=TemplateRead)
async def update_template(
    template_id: uuid.UUID,
    body: TemplateUpdate,
    auth: AdminAuth,
    session: Session,
) -> TemplateRead:
    template = await _get_or_404(template_id, session)
    template = await document_store.update_template(session, template, body)
    return TemplateRead.model_validate(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: uuid.UUID,
    auth: AdminAuth,
    session: Session,
) -> None:
    template = await _get_or_404(template_id, session)
    await document_store.delete_template(session, template)


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(template_id: uuid.UUID, session) -> DocumentTemplate:
    template = await document_store.get_template(session, template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template
