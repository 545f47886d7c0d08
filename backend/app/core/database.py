from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator, Optional

from app.core.config import settings

Base = declarative_base()

# Built on first use so importing the models never opens a connection
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

_ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "sqlite:///": "sqlite+aiosqlite:///",
}


def get_database_url() -> str:
    """DATABASE_URL with the async driver filled in for bare postgres/sqlite URLs"""
    url = settings.DATABASE_URL
    for plain, async_prefix in _ASYNC_DRIVERS.items():
        if url.startswith(plain):
            return async_prefix + url[len(plain):]
    return url


def get_engine() -> AsyncEngine:
    """
    SQLite runs without a pool (aiosqlite connections stay on their own
    thread); anything else gets the default queue pool with pre-ping.
    """
    global _engine
    if _engine is None:
        url = get_database_url()
        if url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}, "poolclass": NullPool}
        else:
            options = {"pool_pre_ping": True}
        _engine = create_async_engine(url, echo=settings.DB_ECHO, **options)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; flushes leftover ORM changes, rolls back on error"""
    async with get_session_factory()() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create any missing tables"""
    import app.models  # noqa: F401  register models on the metadata

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
