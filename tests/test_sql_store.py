"""
Tests for the SQL record store (SQLite via aiosqlite).
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from redirections.core.exceptions import RecordNotFoundError, SlugConflictError, StoreUnavailableError
from redirections.core.store_manager import build_record_store
from redirections.db.change_feed import ChangeKind
from redirections.db.memory_store import InMemoryRecordStore
from redirections.db.models import ContentType
from redirections.db.session import create_store_engine, get_dialect_name
from redirections.db.sql_store import SQLRecordStore
from redirections.db.unavailable_store import UnavailableRecordStore

from tests.conftest import make_record


class TestCrud:

    @pytest.mark.asyncio
    async def test_create_and_get(self, sql_store):
        created = await sql_store.create(make_record())

        fetched = await sql_store.get("launch")

        assert fetched.slug == created.slug == "launch"
        assert fetched.url == "https://example.com/a"
        assert fetched.keywords == "launch, release,news"
        assert fetched.content_type is ContentType.article
        assert fetched.clicks == 0

    @pytest.mark.asyncio
    async def test_timestamps_come_back_in_utc(self, sql_store):
        published = datetime(2026, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        created = await sql_store.create(make_record(published_time=published))

        fetched = await sql_store.get("launch")

        assert fetched.created_at == created.created_at
        assert fetched.updated_at == created.updated_at
        assert fetched.created_at.tzinfo is not None
        assert fetched.published_time == published
        assert fetched.published_time.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_matches_memory_store_record(self, sql_store):
        record = make_record()
        from_sql = await sql_store.create(record)
        from_memory = await InMemoryRecordStore().create(record)

        assert (await sql_store.get("launch")) == from_sql == from_memory

    @pytest.mark.asyncio
    async def test_get_missing(self, sql_store):
        assert await sql_store.get("missing") is None

    @pytest.mark.asyncio
    async def test_create_never_overwrites(self, sql_store):
        await sql_store.create(make_record(title="First"))

        with pytest.raises(SlugConflictError):
            await sql_store.create(make_record(title="Second"))

        assert (await sql_store.get("launch")).title == "First"

    @pytest.mark.asyncio
    async def test_update_leaves_clicks_alone(self, sql_store):
        await sql_store.create(make_record(clicks=4))

        updated = await sql_store.update("launch", {"title": "Renamed", "content_type": "blog"})

        assert updated.title == "Renamed"
        assert updated.content_type is ContentType.blog
        assert updated.clicks == 4

    @pytest.mark.asyncio
    async def test_update_rejects_counter(self, sql_store):
        await sql_store.create(make_record())

        with pytest.raises(ValueError):
            await sql_store.update("launch", {"clicks": 100})

    @pytest.mark.asyncio
    async def test_update_missing(self, sql_store):
        with pytest.raises(RecordNotFoundError):
            await sql_store.update("missing", {"title": "x"})

    @pytest.mark.asyncio
    async def test_delete(self, sql_store):
        await sql_store.create(make_record())

        await sql_store.delete("launch")

        assert await sql_store.get("launch") is None
        with pytest.raises(RecordNotFoundError):
            await sql_store.delete("launch")

    @pytest.mark.asyncio
    async def test_reset_clicks(self, sql_store):
        await sql_store.create(make_record(clicks=9))

        record = await sql_store.reset_clicks("launch")

        assert record.clicks == 0

    @pytest.mark.asyncio
    async def test_list_orders(self, sql_store):
        await sql_store.create(make_record(slug="old", clicks=10, created_at=make_record().created_at.replace(year=2020)))
        await sql_store.create(make_record(slug="new", clicks=1))

        newest_first = [r.slug for r in await sql_store.list()]
        most_clicked = [r.slug for r in await sql_store.list(order_by="clicks")]
        limited = await sql_store.list(limit=1)

        assert newest_first == ["new", "old"]
        assert most_clicked == ["old", "new"]
        assert len(limited) == 1


class TestAtomicIncrement:

    @pytest.mark.asyncio
    async def test_increment_adds_and_touches_updated_at(self, sql_store):
        original = await sql_store.create(make_record(updated_at=make_record().updated_at.replace(year=2020)))

        await sql_store.atomic_increment("launch")
        await sql_store.atomic_increment("launch", delta=2)

        record = await sql_store.get("launch")
        assert record.clicks == 3
        assert record.updated_at.year > original.updated_at.year

    @pytest.mark.asyncio
    async def test_increment_missing(self, sql_store):
        with pytest.raises(RecordNotFoundError):
            await sql_store.atomic_increment("missing")

    @pytest.mark.asyncio
    async def test_increment_only_counter_fields(self, sql_store):
        await sql_store.create(make_record())

        with pytest.raises(ValueError):
            await sql_store.atomic_increment("launch", field="title")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delta", [0, -1])
    async def test_increment_rejects_non_positive_delta(self, sql_store, delta):
        await sql_store.create(make_record(clicks=3))

        with pytest.raises(ValueError):
            await sql_store.atomic_increment("launch", delta=delta)

        assert (await sql_store.get("launch")).clicks == 3

    @pytest.mark.asyncio
    async def test_concurrent_increments(self, sql_store):
        await sql_store.create(make_record(clicks=2))

        await asyncio.gather(*[sql_store.atomic_increment("launch") for _ in range(10)])

        assert (await sql_store.get("launch")).clicks == 12


class TestWatch:

    @pytest.mark.asyncio
    async def test_changes_are_published(self, sql_store):
        subscription = sql_store.watch()

        await sql_store.create(make_record())
        await sql_store.update("launch", {"title": "Edited"})
        await sql_store.atomic_increment("launch")
        await sql_store.delete("launch")

        kinds = [(await subscription.next(timeout=1)).kind for _ in range(4)]
        assert kinds == [ChangeKind.created, ChangeKind.updated, ChangeKind.clicked, ChangeKind.deleted]
        subscription.close()

    @pytest.mark.asyncio
    async def test_clicked_event_carries_record(self, sql_store):
        await sql_store.create(make_record(clicks=4))
        subscription = sql_store.watch()

        await sql_store.atomic_increment("launch")

        event = await subscription.next(timeout=1)
        assert event.kind is ChangeKind.clicked
        assert event.record.clicks == 5
        subscription.close()


class TestUnavailable:

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_store_unavailable(self, tmp_path):
        # Parent directory does not exist, so SQLite cannot open the file
        engine = create_store_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
        store = SQLRecordStore(engine)

        with pytest.raises(StoreUnavailableError):
            await store.get("launch")
        with pytest.raises(StoreUnavailableError):
            await store.atomic_increment("launch")
        await store.close()

    @pytest.mark.asyncio
    async def test_empty_url_builds_unavailable_store(self):
        store = await build_record_store("")

        assert isinstance(store, UnavailableRecordStore)
        with pytest.raises(StoreUnavailableError):
            await store.get("launch")

    @pytest.mark.asyncio
    async def test_unknown_driver_builds_unavailable_store(self):
        store = await build_record_store("nosuchdb+nodriver://host/db")

        assert isinstance(store, UnavailableRecordStore)


def test_dialect_name():
    assert get_dialect_name("sqlite+aiosqlite:///./x.db") == "sqlite"
    assert get_dialect_name("postgresql+asyncpg://u:p@h/db") == "postgresql"
