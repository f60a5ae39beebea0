"""SystemSetting model: administrator-editable key/value configuration."""

from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin

GOOGLE_CLIENT_ID = "GOOGLE_CLIENT_ID"
GOOGLE_CLIENT_SECRET = "GOOGLE_CLIENT_SECRET"
GOOGLE_ACCESS_TOKEN = "GOOGLE_ACCESS_TOKEN"
GOOGLE_REFRESH_TOKEN = "GOOGLE_REFRESH_TOKEN"
GOOGLE_TOKEN_EXPIRY = "GOOGLE_TOKEN_EXPIRY"
GOOGLE_DRIVE_FOLDER_ID = "GOOGLE_DRIVE_FOLDER_ID"

# Stored Fernet-encrypted and masked on read
SECRET_KEYS = frozenset({
    GOOGLE_CLIENT_SECRET,
    GOOGLE_ACCESS_TOKEN,
    GOOGLE_REFRESH_TOKEN,
})

MASKED_VALUE = "********"


class SystemSetting(TimestampMixin, SQLModel, table=True):
    __tablename__ = "system_settings"

    key: str = Field(primary_key=True, max_length=100)
    value: str = Field(sa_column=Column(Text, nullable=False))
    is_secret: bool = Field(default=False)


# ── Pydantic schemas ─────────────────────────────────────────

class SettingWrite(SQLModel):
    value: str = Field(max_length=10000)


class SettingRead(SQLModel):
    key: str
    value: str
    is_secret: bool
    updated_at: datetime
