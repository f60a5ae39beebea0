"""Users CRUD: restricted to admins."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from crm.api.deps import AdminAuth, Session
from crm.core.security import hash_password
from crm.models.user import User, UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    auth: AdminAuth,
    session: Session,
) -> UserRead:
    email = body.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    user = User(
        email=email,
        password_hash=hash_password(body.password),
        name=body.name,
        role=body.role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return UserRead.model_validate(user)


@router.get("", response_model=list[UserRead])
async def list_users(
    auth: AdminAuth,
    session: Session,
) -> list[UserRead]:
    stmt = select(User).order_by(User.email.asc())  # type: ignore[union-attr]
    result = await session.execute(stmt)
    return [UserRead.model_validate(u) for u in result.scalars().all()]


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    auth: AdminAuth,
    session: Session,
) -> UserRead:
    user = await _get_or_404(user_id, session)

    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("password"):
        user.password_hash = hash_password(update_data.pop("password"))
    update_data.pop("password", None)
    for field, value in update_data.items():
        setattr(user, field, value)

    user.touch()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_user(
    user_id: uuid.UUID,
    auth: AdminAuth,
    session: Session,
) -> None:
    if user_id == auth.user_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="You cannot deactivate your own account",
        )
    user = await _get_or_404(user_id, session)
    user.is_active = False
    user.touch()
    session.add(user)
    await session.commit()


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(user_id: uuid.UUID, session) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
