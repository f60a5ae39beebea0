"""User model: a CRM operator account."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class UserRole(StrEnum):
    ADMIN = "admin"
    MANAGER = "manager"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, nullable=False, unique=True, index=True)
    password_hash: str = Field(nullable=False)
    name: str = Field(default="", max_length=255)
    role: UserRole = Field(default=UserRole.MANAGER)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class UserCreate(SQLModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(default="", max_length=255)
    role: UserRole = UserRole.MANAGER


class UserUpdate(SQLModel):
    password: str | None = Field(default=None, min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=255)
    role: UserRole | None = None
    is_active: bool | None = None


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    is_active: bool
