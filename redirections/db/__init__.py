"""
Record store layer.

This module provides:
- RecordStore interface: Abstract base class for record stores
- SQLRecordStore: SQLModel/SQLAlchemy implementation (SQLite by default)
- InMemoryRecordStore: dict-backed implementation for development and tests
- UnavailableRecordStore: stand-in used when no store can be configured

To add a new backend:
1. Create a new class inheriting from RecordStore
2. Implement all abstract methods
3. Build it in redirections.core.store_manager.build_record_store()
"""

from redirections.db.interface import RecordStore
from redirections.db.memory_store import InMemoryRecordStore
from redirections.db.sql_store import SQLRecordStore
from redirections.db.unavailable_store import UnavailableRecordStore

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "SQLRecordStore",
    "UnavailableRecordStore",
]
