"""
Database connection management for Mower Manager.

Uses SQLAlchemy 2.0 async API with asyncpg for PostgreSQL. Any other async
driver URL works as well (tests run on sqlite+aiosqlite).
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mower_manager.config import settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    if url.startswith("sqlite"):
        async_engine = create_async_engine(url, echo=echo)
        # SQLite ignores foreign keys unless asked per connection
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return async_engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,  # Verify connections before use (prevents stale connection errors after restart)
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.effective_database_url, echo=settings.database_echo)

# Create async session factory
AsyncSessionLocal = create_session_factory(engine)


async def init_db(bind: AsyncEngine = engine):
    """
    Initialize database tables.

    This creates all tables defined in the ORM models.
    Should be called on application startup.
    """
    # Import models to ensure they are registered with Base
    from mower_manager.db import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind: AsyncEngine = engine):
    """
    Drop all database tables.

    WARNING: This is destructive. Use only for testing.
    """
    from mower_manager.db import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
