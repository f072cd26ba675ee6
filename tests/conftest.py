"""
Shared fixtures for the BookMySlot test suite.

Each test gets a fresh in-memory SQLite database (aiosqlite, StaticPool so
every session shares the one connection). API tests go through httpx's
ASGITransport with ``get_session`` overridden; the app lifespan is not run.
"""

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["PENDING_SWEEP_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import bookmyslot.models  # noqa: F401 - register tables
from bookmyslot.core.db import get_session
from bookmyslot.core.security import hash_password
from bookmyslot.main import app
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.user import ROLE_CUSTOMER, User


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests. Commit before handing control to the API client."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_clinic(session_maker):
    """Insert and commit a clinic; returns the row."""

    async def _make(name="Acme Dental", username=None, password="clinic-password", clinic_id=None, **fields):
        async with session_maker() as session:
            clinic = Clinic(
                id=clinic_id,
                name=name,
                username=username,
                password_hash=hash_password(password) if username else None,
                **fields,
            )
            session.add(clinic)
            await session.commit()
            await session.refresh(clinic)
            return clinic

    return _make


@pytest.fixture
def make_user(session_maker):
    async def _make(email="patient@example.com", password="user-password", role=ROLE_CUSTOMER, full_name="Pat Ient"):
        async with session_maker() as session:
            user = User(email=email, full_name=full_name, role=role, hashed_password=hash_password(password))
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make
