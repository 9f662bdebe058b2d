# app/database.py

from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base

from app.core.config import Settings, get_settings
import os

Base = declarative_base()

# Built on first use so that the in-memory backend never needs a DATABASE_URL
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def _resolve_database_url(settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()

    # Use environment variable directly if settings is empty
    database_url = settings.DATABASE_URL or os.environ.get('DATABASE_URL', '')
    if not database_url:
        raise ValueError("DATABASE_URL is not set in environment variables")

    # Convert postgresql:// to postgresql+asyncpg:// for async support
    if database_url.startswith('postgresql://'):
        database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return database_url


def get_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            _resolve_database_url(settings),
            echo=False,
            future=True,
            pool_size=10,
            max_overflow=20,
            pool_timeout=30,
            pool_recycle=1800
        )
    return _engine


def get_session_factory(settings: Optional[Settings] = None) -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncSession:
    session = get_session_factory()()
    try:
        yield session
    finally:
        await session.close()


async def create_tables() -> None:
    """Create every table registered on Base (no migrations are managed here)."""
    import app.models  # noqa: F401  registers the models on Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
