"""FastAPI dependencies for authentication and the Google Docs client."""

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_session
from crm.core.security import decode_jwt
from crm.models.user import User, UserRole
from crm.services.google_docs import DocumentClient, GoogleDocsClient
from crm.services.runtime_settings import DbSettingsProvider

bearer_scheme = HTTPBearer()


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = ("user_id", "user_role")

    def __init__(self, user_id: uuid.UUID, user_role: str) -> None:
        self.user_id = user_id
        self.user_role = user_role

    @property
    def is_admin(self) -> bool:
        return self.user_role == UserRole.ADMIN


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthContext:
    """Decode the bearer JWT and check the account is still active."""
    try:
        payload = decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired JWT",
        ) from exc

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed JWT payload",
        ) from exc

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled",
        )

    # Role comes from the DB so demotions apply before the token expires
    return AuthContext(user_id=user.id, user_role=user.role)


async def require_admin(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    if not auth.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action",
        )
    return auth


def get_settings_provider(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DbSettingsProvider:
    return DbSettingsProvider(session)


async def get_docs_client(
    settings_provider: Annotated[DbSettingsProvider, Depends(get_settings_provider)],
) -> AsyncGenerator[DocumentClient, None]:
    """Per-request Google client; closed when the response is sent."""
    async with GoogleDocsClient(settings_provider) as client:
        yield client


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
AdminAuth = Annotated[AuthContext, Depends(require_admin)]
Session = Annotated[AsyncSession, Depends(get_session)]
SettingsStore = Annotated[DbSettingsProvider, Depends(get_settings_provider)]
DocsClient = Annotated[DocumentClient, Depends(get_docs_client)]
