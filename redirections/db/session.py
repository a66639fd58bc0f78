"""
Database Engine and Session Factory

This module builds the async SQLAlchemy engine used by SQLRecordStore.
Connection settings depend on the database type:

- SQLite (sqlite+aiosqlite): NullPool, check_same_thread disabled and a
  generous busy timeout so concurrent counter updates queue up on the file
  lock instead of failing
- PostgreSQL (postgresql+asyncpg): default QueuePool with pre-ping

Engines are created on demand by the store manager, not at import time, so a
missing or broken DATABASE_URL surfaces as an unavailable store rather than
an import error.
"""

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def get_dialect_name(database_url: str) -> str:
    """
    Get the SQLAlchemy dialect name for a connection string.

    Returns:
        Dialect name (e.g., 'sqlite', 'postgresql')
    """
    return make_url(database_url).get_backend_name()


def get_engine_kwargs(database_url: str) -> dict[str, Any]:
    """
    Get engine configuration specific to the database type.

    Returns:
        Keyword arguments for create_async_engine
    """
    if get_dialect_name(database_url) == "sqlite":
        return {
            "poolclass": NullPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
            },
            "echo": False,
        }
    return {
        "pool_pre_ping": True,
        "echo": False,
    }


def create_store_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create the async engine for the record store.

    Args:
        database_url: Connection string (sqlite+aiosqlite:///... or postgresql+asyncpg://...)
        **kwargs: Additional engine options (merged over the defaults)

    Raises:
        sqlalchemy.exc.ArgumentError: If the URL cannot be parsed
        ImportError: If the driver named in the URL is not installed
    """
    engine_kwargs = get_engine_kwargs(database_url)
    engine_kwargs.update(kwargs)
    return create_async_engine(database_url, **engine_kwargs)


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to `engine`."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Records are converted after commit
        autoflush=False,
    )
