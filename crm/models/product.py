"""Product model: catalogue entries that can be attached to deals."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class Product(TimestampMixin, SQLModel, table=True):
    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    sku: str | None = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=2000)
    default_price: float = Field(default=0.0, ge=0.0)


# ── Pydantic schemas ─────────────────────────────────────────

class ProductCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=2000)
    default_price: float = Field(default=0.0, ge=0.0)


class ProductUpdate(SQLModel):
    name: str | None = Field(default=None, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    default_price: float | None = Field(default=None, ge=0.0)


class ProductRead(SQLModel):
    id: uuid.UUID
    name: str
    sku: str | None
    description: str
    default_price: float
    created_at: datetime
    updated_at: datetime
