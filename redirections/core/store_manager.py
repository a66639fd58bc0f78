"""
Record Store Manager

This module manages the global record store instance.

Design:
- One store per application instance, created on startup
- Shared across all requests in the same instance (stores hold no
  per-request state)
- If the store cannot be configured, an UnavailableRecordStore is installed
  instead of failing startup, so the public redirect path keeps answering
"""

import logging
from typing import Optional

from redirections.core.setting import settings
from redirections.db.interface import RecordStore
from redirections.db.session import create_store_engine
from redirections.db.sql_store import SQLRecordStore
from redirections.db.unavailable_store import UnavailableRecordStore

logger = logging.getLogger(__name__)

# Global store instance (initialized on startup)
_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """
    Get the global record store.

    Returns an UnavailableRecordStore when startup has not run or failed.
    """
    if _store is None:
        return UnavailableRecordStore("record store is not initialized")
    return _store


def set_record_store(store: Optional[RecordStore]) -> None:
    """Install a store directly (used by tests and embedding applications)."""
    global _store
    _store = store


async def build_record_store(database_url: Optional[str] = None) -> RecordStore:
    """
    Build the record store for `database_url` (defaults to settings.DATABASE_URL).

    Never raises; configuration problems yield an UnavailableRecordStore.
    """
    database_url = settings.DATABASE_URL if database_url is None else database_url

    if not database_url:
        logger.error("DATABASE_URL is not set; record store is unavailable")
        return UnavailableRecordStore("DATABASE_URL is not configured")

    try:
        engine = create_store_engine(database_url)
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        return UnavailableRecordStore(f"engine creation failed: {e}", original_error=e)

    store = SQLRecordStore(engine, max_queue=settings.CHANGE_FEED_QUEUE_SIZE)

    if settings.CREATE_TABLES_ON_STARTUP:
        try:
            await store.create_tables()
        except Exception as e:
            # The database may come up later; keep the real store so requests can recover
            logger.error(f"Failed to create tables: {e}", exc_info=True)

    return store


async def initialize_store() -> None:
    """Initialize the global record store."""
    global _store

    if _store is not None:
        logger.warning("Record store already initialized")
        return

    _store = await build_record_store()
    logger.info(f"Record store initialized: {type(_store).__name__}")


async def shutdown_store() -> None:
    """Close the global record store."""
    global _store

    if _store is None:
        return

    try:
        await _store.close()
        logger.info("Record store closed")
    except Exception as e:
        logger.warning(f"Failed to close record store: {e}")
    finally:
        _store = None
