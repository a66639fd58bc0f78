"""
SQL Record Store

RecordStore implementation on SQLModel / SQLAlchemy async sessions.

Click counting uses a single statement:

    UPDATE redirections SET clicks = clicks + :delta, updated_at = :now WHERE slug = :slug

The database applies the addition under its own row lock, so concurrent
follow requests never lose increments, and the counter and timestamp change
together. The new count is read back only to fill in change events for
watch() subscribers, after the increment has committed.

Slug uniqueness relies on the primary key: create() is a plain INSERT and a
duplicate key surfaces as SlugConflictError rather than an overwrite.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from redirections.core.exceptions import (
    RecordNotFoundError,
    RedirectionsError,
    SlugConflictError,
    StoreUnavailableError,
)
from redirections.db.change_feed import ChangeFeed, ChangeKind, ChangeSubscription
from redirections.db.interface import RecordStore
from redirections.db.models import (
    COUNTER_FIELDS,
    METADATA_FIELDS,
    TIMESTAMP_FIELDS,
    ContentType,
    RedirectRecord,
    Redirection,
    as_utc,
    utcnow,
)
from redirections.db.session import make_session_maker

logger = logging.getLogger(__name__)


class SQLRecordStore(RecordStore):
    """
    Record store backed by a SQL database.

    Each operation opens its own short-lived session, so the store can be
    shared by concurrent requests and background tasks.
    """

    def __init__(self, engine: AsyncEngine, max_queue: int = 100):
        self.engine = engine
        self.session_maker = make_session_maker(engine)
        self.feed = ChangeFeed(max_queue=max_queue)

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[Any]:
        """Open a session and translate infrastructure errors to StoreUnavailableError."""
        try:
            async with self.session_maker() as session:
                yield session
        except RedirectionsError:
            raise
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailableError(f"{operation} failed: {e}", original_error=e) from e

    async def create_tables(self) -> None:
        """Create missing tables (development convenience; production uses Alembic)."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailableError(f"create tables failed: {e}", original_error=e) from e

    async def ping(self) -> bool:
        async with self._session("ping") as session:
            await session.execute(select(1))
        return True

    async def get(self, slug: str) -> Optional[RedirectRecord]:
        async with self._session("get") as session:
            row = await session.get(Redirection, slug)
            return row.to_record() if row else None

    async def create(self, record: RedirectRecord) -> RedirectRecord:
        row = Redirection.from_record(record)
        async with self._session("create") as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise SlugConflictError(record.slug)
            created = row.to_record()

        self.feed.publish(ChangeKind.created, created.slug, created)
        return created

    async def update(self, slug: str, changes: Dict[str, Any]) -> RedirectRecord:
        unknown = set(changes) - set(METADATA_FIELDS) - {"updated_at"}
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        values = dict(changes)
        if "content_type" in values:
            values["content_type"] = ContentType(values["content_type"]).value
        for name in TIMESTAMP_FIELDS:
            if name in values:
                values[name] = as_utc(values[name])

        async with self._session("update") as session:
            statement = (
                update(Redirection)
                .where(Redirection.slug == slug)
                .values(**values)
            )
            result = await session.execute(statement)
            if result.rowcount == 0:
                await session.rollback()
                raise RecordNotFoundError(slug)
            await session.commit()
            row = await session.get(Redirection, slug, populate_existing=True)
            if row is None:
                # Deleted between the UPDATE and the read-back
                raise RecordNotFoundError(slug)
            updated = row.to_record()

        self.feed.publish(ChangeKind.updated, slug, updated)
        return updated

    async def atomic_increment(self, slug: str, field: str = "clicks", delta: int = 1) -> None:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"'{field}' is not a counter field")
        if delta < 1:
            raise ValueError(f"Counters only grow; delta must be at least 1, got {delta}")

        column = getattr(Redirection, field)
        async with self._session("increment") as session:
            statement = (
                update(Redirection)
                .where(Redirection.slug == slug)
                .values({field: column + delta, "updated_at": utcnow()})
            )
            result = await session.execute(statement)
            if result.rowcount == 0:
                await session.rollback()
                raise RecordNotFoundError(slug)
            await session.commit()
            record = None
            if self.feed.subscriber_count:
                # Read back only when someone is watching
                row = await session.get(Redirection, slug, populate_existing=True)
                record = row.to_record() if row else None

        self.feed.publish(ChangeKind.clicked, slug, record)

    async def reset_clicks(self, slug: str) -> RedirectRecord:
        async with self._session("reset clicks") as session:
            statement = (
                update(Redirection)
                .where(Redirection.slug == slug)
                .values(clicks=0, updated_at=utcnow())
            )
            result = await session.execute(statement)
            if result.rowcount == 0:
                await session.rollback()
                raise RecordNotFoundError(slug)
            await session.commit()
            row = await session.get(Redirection, slug, populate_existing=True)
            if row is None:
                raise RecordNotFoundError(slug)
            record = row.to_record()

        self.feed.publish(ChangeKind.updated, slug, record)
        return record

    async def delete(self, slug: str) -> None:
        async with self._session("delete") as session:
            result = await session.execute(
                delete(Redirection).where(Redirection.slug == slug)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise RecordNotFoundError(slug)
            await session.commit()

        self.feed.publish(ChangeKind.deleted, slug)

    def watch(self) -> ChangeSubscription:
        return self.feed.subscribe()

    async def close(self) -> None:
        self.feed.close()
        await self.engine.dispose()

    async def list(self, order_by: str = "created_at", limit: Optional[int] = None) -> List[RedirectRecord]:
        column = Redirection.clicks if order_by == "clicks" else Redirection.created_at
        statement = select(Redirection).order_by(column.desc(), Redirection.slug)
        if limit is not None:
            statement = statement.limit(limit)

        async with self._session("list") as session:
            result = await session.execute(statement)
            return [row.to_record() for row in result.scalars().all()]
