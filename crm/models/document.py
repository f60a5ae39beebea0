"""Document templates and the documents generated from them."""

import uuid
from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class DocumentTemplate(TimestampMixin, SQLModel, table=True):
    """Pointer to a Google Doc used as the source of generated documents."""

    __tablename__ = "document_templates"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    external_document_id: str = Field(max_length=255, nullable=False)
    # Overrides the global GOOGLE_DRIVE_FOLDER_ID setting when present
    destination_folder_id: str | None = Field(default=None, max_length=255)


class GeneratedDocument(TimestampMixin, SQLModel, table=True):
    __tablename__ = "generated_documents"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    deal_id: uuid.UUID = Field(foreign_key="deals.id", nullable=False, index=True)
    template_id: uuid.UUID | None = Field(
        default=None, foreign_key="document_templates.id", nullable=True,
    )

    name: str = Field(max_length=500, nullable=False)
    # Base64-encoded DOCX
    content: str = Field(sa_column=Column(Text, nullable=False))

    external_document_id: str | None = Field(default=None, max_length=255)
    view_link: str | None = Field(default=None, max_length=2000)


# ── Pydantic schemas ─────────────────────────────────────────

class TemplateCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    external_document_id: str = Field(min_length=1, max_length=255)
    destination_folder_id: str | None = Field(default=None, max_length=255)


class TemplateUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    external_document_id: str | None = Field(default=None, min_length=1, max_length=255)
    destination_folder_id: str | None = Field(default=None, max_length=255)


class TemplateRead(SQLModel):
    id: uuid.UUID
    name: str
    external_document_id: str
    destination_folder_id: str | None
    created_at: datetime
    updated_at: datetime


class GeneratedDocumentCreate(SQLModel):
    name: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1, description="Base64-encoded DOCX")
    template_id: uuid.UUID | None = None
    external_document_id: str | None = Field(default=None, max_length=255)
    view_link: str | None = Field(default=None, max_length=2000)


class GeneratedDocumentRead(SQLModel):
    """Listing view: the base64 payload is served by the download route."""

    id: uuid.UUID
    deal_id: uuid.UUID
    template_id: uuid.UUID | None
    name: str
    external_document_id: str | None
    view_link: str | None
    created_at: datetime
