"""Shared columns for CRM tables: UUID keys and naive-UTC timestamps."""

import uuid
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    # Stored naive; every timestamp in the database is UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class TimestampMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch(self) -> None:
        """Mark the row as edited now. Call before adding it back to the session."""
        self.updated_at = utcnow()


def apply_update(row: SQLModel, updates: dict, nullable: tuple[str, ...] = ()) -> None:
    """Copy a PATCH payload onto ``row``.

    An explicit ``null`` only clears the fields named in ``nullable``; for
    required columns it is ignored, the same as leaving the field out.
    """
    for field, value in updates.items():
        if value is None and field not in nullable:
            continue
        setattr(row, field, value)
