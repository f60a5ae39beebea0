"""Shared test fixtures: async SQLite in-memory DB + test client."""

import os
from collections.abc import AsyncGenerator

from cryptography.fernet import Fernet

# Must be set before crm.core.security reads the settings
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import crm.models  # noqa: E402, F401
from crm.api.deps import get_docs_client  # noqa: E402
from crm.core import cache  # noqa: E402
from crm.core.database import get_session  # noqa: E402
from crm.core.security import create_jwt, hash_password  # noqa: E402
from crm.main import app  # noqa: E402
from crm.models.user import User, UserRole  # noqa: E402
from fakes import FakeDocsClient  # noqa: E402


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def fake_docs() -> FakeDocsClient:
    return FakeDocsClient()


@pytest.fixture
async def client(session, fake_docs) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and Google client overrides."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_docs_client] = lambda: fake_docs
    cache.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    cache.clear()


# ── Users ────────────────────────────────────────────────────

async def _make_user(session: AsyncSession, email: str, role: UserRole) -> User:
    user = User(
        email=email,
        password_hash=hash_password("password123"),
        name=email.split("@")[0].title(),
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_jwt(str(user.id), user.role)}"}


@pytest.fixture
async def admin_user(session) -> User:
    return await _make_user(session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
async def manager_user(session) -> User:
    return await _make_user(session, "manager@example.com", UserRole.MANAGER)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return _headers(admin_user)


@pytest.fixture
def manager_headers(manager_user) -> dict:
    return _headers(manager_user)
