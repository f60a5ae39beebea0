"""Pipeline and Stage models: the columns a deal moves through."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid

DEFAULT_STAGE_COLOR = "#94a3b8"


class Pipeline(TimestampMixin, SQLModel, table=True):
    __tablename__ = "pipelines"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)


class Stage(TimestampMixin, SQLModel, table=True):
    __tablename__ = "stages"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    pipeline_id: uuid.UUID = Field(foreign_key="pipelines.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    color: str = Field(default=DEFAULT_STAGE_COLOR, max_length=20)
    order_index: int = Field(default=0)


# ── Pydantic schemas ─────────────────────────────────────────

class PipelineCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)


class StageCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)


class StageUpdate(SQLModel):
    name: str | None = Field(default=None, max_length=255)
    color: str | None = Field(default=None, max_length=20)
    order_index: int | None = None


class StageOrder(SQLModel):
    id: uuid.UUID
    order_index: int


class StageRead(SQLModel):
    id: uuid.UUID
    pipeline_id: uuid.UUID
    name: str
    color: str
    order_index: int


class PipelineRead(SQLModel):
    id: uuid.UUID
    name: str
    stages: list[StageRead] = Field(default_factory=list)
    created_at: datetime
