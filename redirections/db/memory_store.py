"""
In-Memory Record Store

Dict-backed RecordStore for local development and tests.

Atomicity: every mutating method finishes its read and write without an
await in between, so on a single event loop no other coroutine can observe
or interleave with a half-applied change. No lock is needed.
"""

from typing import Any, Dict, List, Optional

from redirections.core.exceptions import RecordNotFoundError, SlugConflictError
from redirections.db.change_feed import ChangeFeed, ChangeKind, ChangeSubscription
from redirections.db.interface import RecordStore
from redirections.db.models import COUNTER_FIELDS, METADATA_FIELDS, RedirectRecord, utcnow


class InMemoryRecordStore(RecordStore):
    """RecordStore holding records in a process-local dict."""

    def __init__(self, records: Optional[List[RedirectRecord]] = None, max_queue: int = 100):
        self._records: Dict[str, RedirectRecord] = {}
        self.feed = ChangeFeed(max_queue=max_queue)
        for record in records or []:
            self._records[record.slug] = record.model_copy()

    async def get(self, slug: str) -> Optional[RedirectRecord]:
        record = self._records.get(slug)
        return record.model_copy() if record else None

    async def create(self, record: RedirectRecord) -> RedirectRecord:
        if record.slug in self._records:
            raise SlugConflictError(record.slug)
        stored = record.model_copy()
        self._records[record.slug] = stored
        self.feed.publish(ChangeKind.created, record.slug, stored.model_copy())
        return stored.model_copy()

    async def update(self, slug: str, changes: Dict[str, Any]) -> RedirectRecord:
        unknown = set(changes) - set(METADATA_FIELDS) - {"updated_at"}
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        stored = self._records.get(slug)
        if stored is None:
            raise RecordNotFoundError(slug)
        # clicks is read from the stored object at write time, never from the caller
        updated = stored.model_copy(update=changes)
        self._records[slug] = updated
        self.feed.publish(ChangeKind.updated, slug, updated.model_copy())
        return updated.model_copy()

    async def atomic_increment(self, slug: str, field: str = "clicks", delta: int = 1) -> None:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"'{field}' is not a counter field")
        if delta < 1:
            raise ValueError(f"Counters only grow; delta must be at least 1, got {delta}")
        stored = self._records.get(slug)
        if stored is None:
            raise RecordNotFoundError(slug)
        setattr(stored, field, getattr(stored, field) + delta)
        stored.updated_at = utcnow()
        self.feed.publish(ChangeKind.clicked, slug, stored.model_copy())

    async def reset_clicks(self, slug: str) -> RedirectRecord:
        stored = self._records.get(slug)
        if stored is None:
            raise RecordNotFoundError(slug)
        stored.clicks = 0
        stored.updated_at = utcnow()
        self.feed.publish(ChangeKind.updated, slug, stored.model_copy())
        return stored.model_copy()

    async def delete(self, slug: str) -> None:
        if self._records.pop(slug, None) is None:
            raise RecordNotFoundError(slug)
        self.feed.publish(ChangeKind.deleted, slug)

    def watch(self) -> ChangeSubscription:
        return self.feed.subscribe()

    async def close(self) -> None:
        self.feed.close()

    async def list(self, order_by: str = "created_at", limit: Optional[int] = None) -> List[RedirectRecord]:
        if order_by == "clicks":
            key = lambda r: r.clicks
        else:
            key = lambda r: r.created_at.timestamp() if r.created_at else 0.0
        records = sorted(self._records.values(), key=key, reverse=True)
        if limit is not None:
            records = records[:limit]
        return [r.model_copy() for r in records]
