"""Runtime settings: administrator-editable values stored in system_settings.

The document pipeline never reads this table directly; it is handed a
``SettingsProvider`` so tests can pin configuration without a database.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.security import decrypt_value, encrypt_value
from crm.models.system_setting import SECRET_KEYS, SystemSetting

logger = logging.getLogger(__name__)


class SettingsProvider(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class DbSettingsProvider:
    """Reads and writes ``SystemSetting`` rows, encrypting secret keys at rest."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> str | None:
        row = await self.session.get(SystemSetting, key)
        if row is None or row.value == "":
            return None
        if row.is_secret:
            return decrypt_value(row.value)
        return row.value

    async def set(self, key: str, value: str) -> None:
        await upsert_setting(self.session, key, value)


async def upsert_setting(session: AsyncSession, key: str, value: str) -> SystemSetting:
    """Create or replace a setting. Secret keys are stored encrypted."""
    is_secret = key in SECRET_KEYS
    stored = encrypt_value(value) if is_secret and value else value

    row = await session.get(SystemSetting, key)
    if row is None:
        row = SystemSetting(key=key, value=stored, is_secret=is_secret)
    else:
        row.value = stored
        row.is_secret = is_secret
        row.touch()
    session.add(row)
    await session.commit()
    await session.refresh(row)
    logger.info("Saved system setting %s", key)
    return row
