from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from schoolhub.core.config import settings


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite)."""
    if make_url(database_url).get_backend_name() != "sqlite":
        # pool_pre_ping: check the connection is alive before use.
        # pool_recycle: drop connections idle longer than the server timeout.
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 300)
    return create_async_engine(database_url, echo=False, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)

AsyncSessionLocal = build_sessionmaker(engine)

Base = declarative_base()


async def create_tables(bind: AsyncEngine) -> None:
    # Importing the models registers every table on Base.metadata
    import schoolhub.core.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
