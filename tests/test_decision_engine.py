"""
Tests for the redirect decision engine and the redirect service.
"""

import pytest

from redirections.core.exceptions import StoreUnavailableError
from redirections.db.memory_store import InMemoryRecordStore
from redirections.db.unavailable_store import UnavailableRecordStore
from redirections.db.models import ContentType
from redirections.services.click_accounting import ClickAccountingService
from redirections.services.decision_engine import (
    Intent,
    NotFound,
    PreviewPayload,
    RedirectDecisionEngine,
    RedirectTarget,
)
from redirections.services.redirect_service import RedirectService

from tests.conftest import make_record


class FailingIncrementStore(InMemoryRecordStore):
    """Reads work, counter updates are denied."""

    async def atomic_increment(self, slug, field="clicks", delta=1):
        raise StoreUnavailableError("permission denied")


class TestIntentFromQuery:

    def test_true_means_follow(self):
        assert Intent.from_query("true") is Intent.follow

    def test_everything_else_means_preview(self):
        for value in [None, "", "false", "True", "TRUE", "1", "yes", "true "]:
            assert Intent.from_query(value) is Intent.preview, f"Should preview: {value!r}"


class TestDecide:

    @pytest.mark.asyncio
    async def test_missing_record_short_circuits(self, memory_store):
        engine = RedirectDecisionEngine(ClickAccountingService(memory_store))

        assert isinstance(await engine.decide(None, Intent.preview), NotFound)
        assert isinstance(await engine.decide(None, Intent.follow), NotFound)

    @pytest.mark.asyncio
    async def test_preview_returns_stored_metadata(self, memory_store, launch_record):
        engine = RedirectDecisionEngine(ClickAccountingService(memory_store), await_accounting=True)

        outcome = await engine.decide(launch_record, Intent.preview)

        assert isinstance(outcome, PreviewPayload)
        assert outcome.title == launch_record.title
        assert outcome.description == launch_record.description
        assert outcome.image_url == launch_record.image_url
        assert outcome.keywords_raw == launch_record.keywords
        assert outcome.keywords == ["launch", "release", "news"]
        assert outcome.author == launch_record.author
        assert outcome.site_name == launch_record.site_name
        assert outcome.content_type is ContentType.article
        assert outcome.canonical_url == launch_record.canonical_url
        assert outcome.published_time == launch_record.published_time
        assert outcome.clicks == 0
        assert (await memory_store.get("launch")).clicks == 0

    @pytest.mark.asyncio
    async def test_preview_surfaces_empty_author_verbatim(self, memory_store):
        """Defaults are a writer concern; the read path shows what is stored."""
        record = make_record(author="", canonical_url="")
        engine = RedirectDecisionEngine(ClickAccountingService(memory_store))

        outcome = await engine.decide(record, Intent.preview)

        assert outcome.author == ""
        assert outcome.canonical_url == ""

    @pytest.mark.asyncio
    async def test_follow_counts_and_redirects(self, memory_store, launch_record):
        engine = RedirectDecisionEngine(ClickAccountingService(memory_store), await_accounting=True)

        outcome = await engine.decide(launch_record, Intent.follow)

        assert outcome == RedirectTarget(url="https://example.com/a")
        assert (await memory_store.get("launch")).clicks == 1

    @pytest.mark.asyncio
    async def test_follow_redirects_when_increment_fails(self, launch_record):
        store = FailingIncrementStore([launch_record])

        for await_accounting in (True, False):
            accounting = ClickAccountingService(store)
            engine = RedirectDecisionEngine(accounting, await_accounting=await_accounting)

            outcome = await engine.decide(launch_record, Intent.follow)
            await accounting.drain()

            assert outcome == RedirectTarget(url=launch_record.url)

    @pytest.mark.asyncio
    async def test_follow_uses_defer_hook(self, memory_store, launch_record):
        deferred = []
        accounting = ClickAccountingService(memory_store)
        engine = RedirectDecisionEngine(accounting)

        outcome = await engine.decide(
            launch_record, Intent.follow, defer=lambda func, *args: deferred.append((func, args))
        )

        assert outcome == RedirectTarget(url=launch_record.url)
        assert (await memory_store.get("launch")).clicks == 0  # not yet run
        func, args = deferred[0]
        await func(*args)
        assert (await memory_store.get("launch")).clicks == 1

    @pytest.mark.asyncio
    async def test_follow_survives_broken_defer_hook(self, memory_store, launch_record):
        def broken(func, *args):
            raise RuntimeError("queue closed")

        engine = RedirectDecisionEngine(ClickAccountingService(memory_store))

        outcome = await engine.decide(launch_record, Intent.follow, defer=broken)

        assert outcome == RedirectTarget(url=launch_record.url)

    @pytest.mark.asyncio
    async def test_follow_without_hook_spawns_background_task(self, memory_store, launch_record):
        accounting = ClickAccountingService(memory_store)
        engine = RedirectDecisionEngine(accounting)

        await engine.decide(launch_record, Intent.follow)
        await accounting.drain()

        assert (await memory_store.get("launch")).clicks == 1
        assert accounting.pending_count == 0


class TestRedirectService:

    @pytest.mark.asyncio
    async def test_not_found_carries_slug(self, memory_store):
        outcome = await RedirectService(memory_store).handle("nope", Intent.follow)

        assert outcome == NotFound("nope")

    @pytest.mark.asyncio
    async def test_launch_scenario(self, memory_store):
        """Preview, then follow twice: clicks go 0 -> 1 -> 2."""
        service = RedirectService(memory_store, await_accounting=True)

        preview = await service.handle("launch", Intent.preview)
        assert isinstance(preview, PreviewPayload)
        assert preview.title == "Launch day"
        assert preview.clicks == 0

        target = await service.handle("launch", Intent.follow)
        assert target == RedirectTarget(url="https://example.com/a")
        assert (await memory_store.get("launch")).clicks == 1

        await service.handle("launch", Intent.follow)
        assert (await memory_store.get("launch")).clicks == 2

    @pytest.mark.asyncio
    async def test_deleted_slug_is_not_found(self, memory_store):
        service = RedirectService(memory_store)

        await memory_store.delete("launch")

        assert isinstance(await service.handle("launch", Intent.preview), NotFound)

    @pytest.mark.asyncio
    async def test_index_lists_records(self, memory_store):
        await memory_store.create(make_record(slug="second"))
        await memory_store.atomic_increment("second")

        records = await RedirectService(memory_store).index(order_by="clicks")

        assert [r.slug for r in records] == ["second", "launch"]

    @pytest.mark.asyncio
    async def test_index_degrades_to_empty(self, caplog):
        records = await RedirectService(UnavailableRecordStore("no credentials")).index()

        assert records == []
        assert "Store unavailable while listing" in caplog.text
