from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from bookmyslot.core.config import settings


def to_async_url(database_url: str) -> str:
    """Map a postgresql:// URL to asyncpg and strip the psycopg-only query params."""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return database_url
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse(("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def build_engine(database_url: str) -> AsyncEngine:
    url = to_async_url(database_url)
    if not url.startswith("postgresql+asyncpg"):
        # SQLite and friends: no pool sizing, no ssl connect arg
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=settings.env == "development",
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        # asyncpg takes ssl here instead of sslmode in the URL
        connect_args={"ssl": True} if settings.database_ssl else {},
    )


engine = build_engine(settings.database_url)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
