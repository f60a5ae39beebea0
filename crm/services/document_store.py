"""Template store and generated-document persistence."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.core import cache
from crm.models.base import apply_update
from crm.models.document import (
    DocumentTemplate,
    GeneratedDocument,
    TemplateCreate,
    TemplateRead,
    TemplateUpdate,
)

logger = logging.getLogger(__name__)


# ── Templates ─────────────────────────────────────────────────

async def create_template(session: AsyncSession, body: TemplateCreate) -> DocumentTemplate:
    template = DocumentTemplate(
        name=body.name,
        external_document_id=body.external_document_id,
        destination_folder_id=body.destination_folder_id or None,
    )
    session.add(template)
    await session.commit()
    await session.refresh(template)
    cache.invalidate_prefix(cache.TEMPLATE_PREFIX)
    logger.info("Created template %s (%s)", template.id, template.name)
    return template


async def get_template(
    session: AsyncSession, template_id: uuid.UUID,
) -> DocumentTemplate | None:
    return await session.get(DocumentTemplate, template_id)


async def update_template(
    session: AsyncSession,
    template: DocumentTemplate,
    body: TemplateUpdate,
) -> DocumentTemplate:
    updates = body.model_dump(exclude_unset=True)
    if "destination_folder_id" in updates and not updates["destination_folder_id"]:
        updates["destination_folder_id"] = None
    apply_update(template, updates, nullable=("destination_folder_id",))

    template.touch()
    session.add(template)
    await session.commit()
    await session.refresh(template)
    cache.invalidate_prefix(cache.TEMPLATE_PREFIX)
    return template


async def delete_template(session: AsyncSession, template: DocumentTemplate) -> None:
    # Saved documents outlive their template
    result = await session.execute(
        select(GeneratedDocument).where(GeneratedDocument.template_id == template.id)
    )
    for doc in result.scalars().all():
        doc.template_id = None
        session.add(doc)

    await session.delete(template)
    await session.commit()
    cache.invalidate_prefix(cache.TEMPLATE_PREFIX)
    logger.info("Deleted template %s", template.id)


async def list_templates(session: AsyncSession) -> list[TemplateRead]:
    """All templates, newest first. Served from cache between mutations."""
    cached = cache.get(cache.TEMPLATE_LIST_KEY)
    if cached is not None:
        return cached

    stmt = select(DocumentTemplate).order_by(
        DocumentTemplate.created_at.desc()  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    templates = [TemplateRead.model_validate(t) for t in result.scalars().all()]
    cache.put(cache.TEMPLATE_LIST_KEY, templates)
    return templates


# ── Generated documents ───────────────────────────────────────

async def save_generated_document(
    session: AsyncSession,
    deal_id: uuid.UUID,
    name: str,
    content_base64: str,
    template_id: uuid.UUID | None = None,
    external_document_id: str | None = None,
    view_link: str | None = None,
) -> GeneratedDocument:
    doc = GeneratedDocument(
        deal_id=deal_id,
        template_id=template_id,
        name=name,
        content=content_base64,
        external_document_id=external_document_id,
        view_link=view_link,
    )
    session.add(doc)
    await session.commit()
    await session.refresh(doc)
    logger.info("Saved generated document %s for deal %s", doc.id, deal_id)
    return doc


async def list_deal_documents(
    session: AsyncSession, deal_id: uuid.UUID,
) -> list[GeneratedDocument]:
    stmt = (
        select(GeneratedDocument)
        .where(GeneratedDocument.deal_id == deal_id)
        .order_by(GeneratedDocument.created_at.desc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_generated_document(session: AsyncSession, doc: GeneratedDocument) -> None:
    await session.delete(doc)
    await session.commit()
