"""Deal model plus its line items and comments."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid
from crm.models.counterparty import CounterpartyRead


class DealStatus(StrEnum):
    OPEN = "open"
    WON = "won"
    LOST = "lost"


class Deal(TimestampMixin, SQLModel, table=True):
    __tablename__ = "deals"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    stage_id: uuid.UUID = Field(foreign_key="stages.id", nullable=False, index=True)
    counterparty_id: uuid.UUID | None = Field(
        default=None, foreign_key="counterparties.id", nullable=True, index=True,
    )

    title: str = Field(max_length=500, nullable=False)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    amount: float = Field(default=0.0)
    status: DealStatus = Field(default=DealStatus.OPEN)

    # Printed on generated documents as {{doc_number}}
    document_number: str | None = Field(default=None, max_length=100)


class DealProduct(TimestampMixin, SQLModel, table=True):
    """A product line on a deal. The price is frozen at the time of sale."""

    __tablename__ = "deal_products"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    deal_id: uuid.UUID = Field(foreign_key="deals.id", nullable=False, index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity: int = Field(default=1, ge=0)
    price_at_sale: float = Field(default=0.0, ge=0.0)


class Comment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "comments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    deal_id: uuid.UUID = Field(foreign_key="deals.id", nullable=False, index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))


# ── Pydantic schemas ─────────────────────────────────────────

class DealCreate(SQLModel):
    title: str = Field(min_length=1, max_length=500)
    stage_id: uuid.UUID
    amount: float = 0.0
    description: str = ""
    counterparty_id: uuid.UUID | None = None
    document_number: str | None = Field(default=None, max_length=100)


class DealUpdate(SQLModel):
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    amount: float | None = None
    status: DealStatus | None = None
    counterparty_id: uuid.UUID | None = None
    document_number: str | None = Field(default=None, max_length=100)


class DealStageMove(SQLModel):
    stage_id: uuid.UUID


class DealRead(SQLModel):
    id: uuid.UUID
    stage_id: uuid.UUID
    counterparty_id: uuid.UUID | None
    title: str
    description: str
    amount: float
    status: DealStatus
    document_number: str | None
    created_at: datetime
    updated_at: datetime


class DealProductCreate(SQLModel):
    product_id: uuid.UUID
    quantity: int = Field(default=1, ge=0)
    price_at_sale: float | None = Field(
        default=None, ge=0.0, description="Defaults to the product's default price",
    )


class DealProductUpdate(SQLModel):
    quantity: int | None = Field(default=None, ge=0)
    price_at_sale: float | None = Field(default=None, ge=0.0)


class DealProductRead(SQLModel):
    id: uuid.UUID
    deal_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    quantity: int
    price_at_sale: float
    line_total: float


class CommentCreate(SQLModel):
    content: str = Field(min_length=1, max_length=10000)


class CommentRead(SQLModel):
    id: uuid.UUID
    deal_id: uuid.UUID
    content: str
    created_at: datetime


class DealDetailRead(DealRead):
    counterparty: CounterpartyRead | None = None
    products: list[DealProductRead] = Field(default_factory=list)
    comments: list[CommentRead] = Field(default_factory=list)
