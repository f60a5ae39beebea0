"""Counterparty model: the company or person on the other side of a deal."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class CounterpartyType(StrEnum):
    COMPANY = "company"
    INDIVIDUAL = "individual"


class Counterparty(TimestampMixin, SQLModel, table=True):
    __tablename__ = "counterparties"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    type: CounterpartyType = Field(default=CounterpartyType.COMPANY)
    name: str = Field(max_length=255, nullable=False)
    tax_id: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1000)
    contact_person: str | None = Field(default=None, max_length=255)


# ── Pydantic schemas ─────────────────────────────────────────

class CounterpartyCreate(SQLModel):
    type: CounterpartyType = CounterpartyType.COMPANY
    name: str = Field(min_length=1, max_length=255)
    tax_id: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1000)
    contact_person: str | None = Field(default=None, max_length=255)


class CounterpartyUpdate(SQLModel):
    type: CounterpartyType | None = None
    name: str | None = Field(default=None, max_length=255)
    tax_id: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1000)
    contact_person: str | None = Field(default=None, max_length=255)


class CounterpartyRead(SQLModel):
    id: uuid.UUID
    type: CounterpartyType
    name: str
    tax_id: str | None
    email: str | None
    phone: str | None
    address: str | None
    contact_person: str | None
    created_at: datetime
    updated_at: datetime
