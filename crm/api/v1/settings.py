"""Runtime settings: admin-editable key/value configuration."""

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from crm.api.deps import AdminAuth, Session
from crm.models.system_setting import MASKED_VALUE, SettingRead, SettingWrite, SystemSetting
from crm.services.runtime_settings import upsert_setting

router = APIRouter(prefix="/settings", tags=["settings"])


def _to_read(row: SystemSetting) -> SettingRead:
    return SettingRead(
        key=row.key,
        value=MASKED_VALUE if row.is_secret and row.value else row.value,
        is_secret=row.is_secret,
        updated_at=row.updated_at,
    )


@router.get("", response_model=list[SettingRead])
async def list_settings(auth: AdminAuth, session: Session) -> list[SettingRead]:
    result = await session.execute(
        select(SystemSetting).order_by(SystemSetting.key.asc())  # type: ignore[union-attr]
    )
    return [_to_read(row) for row in result.scalars().all()]


@router.get("/{key}", response_model=SettingRead)
async def get_setting(key: str, auth: AdminAuth, session: Session) -> SettingRead:
    row = await session.get(SystemSetting, key)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return _to_read(row)


@router.put("/{key}", response_model=SettingRead)
async def put_setting(
    key: str,
    body: SettingWrite,
    auth: AdminAuth,
    session: Session,
) -> SettingRead:
    """Create or replace a setting. Secret keys are encrypted at rest."""
    if body.value == MASKED_VALUE:
        # The UI echoes the mask back for untouched secret fields
        row = await session.get(SystemSetting, key)
        if row is not None:
            return _to_read(row)
    row = await upsert_setting(session, key, body.value.strip())
    return _to_read(row)
