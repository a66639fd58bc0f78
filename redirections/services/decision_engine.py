"""
Redirect Decision Engine

Given a resolved record and the visitor's intent, decides between serving
the preview and redirecting to the destination.

    record is None          -> NotFound (intent is not looked at)
    intent == preview       -> PreviewPayload, counter untouched
    intent == follow        -> click accounting handed off, RedirectTarget(url)

The redirect target never depends on the outcome of click accounting.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from redirections.db.models import ContentType, RedirectRecord
from redirections.services.click_accounting import ClickAccountingService

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    preview = "preview"
    follow = "follow"

    @classmethod
    def from_query(cls, value: Optional[str]) -> "Intent":
        """Only the exact string "true" asks for a redirect."""
        return cls.follow if value == "true" else cls.preview


@dataclass(frozen=True)
class NotFound:
    slug: Optional[str] = None


@dataclass(frozen=True)
class RedirectTarget:
    url: str


@dataclass(frozen=True)
class PreviewPayload:
    slug: str
    url: str
    title: str
    description: str
    image_url: str
    keywords: List[str]
    keywords_raw: str
    author: str
    site_name: str
    content_type: ContentType
    canonical_url: str
    published_time: Optional[datetime]
    modified_time: Optional[datetime]
    updated_at: Optional[datetime]
    clicks: int

    @classmethod
    def from_record(cls, record: RedirectRecord) -> "PreviewPayload":
        return cls(
            slug=record.slug,
            url=record.url,
            title=record.title,
            description=record.description,
            image_url=record.image_url,
            keywords=record.keyword_list,
            keywords_raw=record.keywords,
            author=record.author,
            site_name=record.site_name,
            content_type=ContentType(record.content_type),
            canonical_url=record.canonical_url,
            published_time=record.published_time,
            modified_time=record.modified_time,
            updated_at=record.updated_at,
            clicks=record.clicks,
        )


Outcome = Union[NotFound, PreviewPayload, RedirectTarget]

# Deferral hook with the BackgroundTasks.add_task calling convention: defer(func, *args)
Defer = Callable[..., Any]


class RedirectDecisionEngine:
    """
    Chooses the response for one request. Holds no per-request state.
    """

    def __init__(self, accounting: ClickAccountingService, await_accounting: bool = False):
        """
        Args:
            accounting: Service performing the click increment
            await_accounting: Wait for the increment before returning the target
        """
        self.accounting = accounting
        self.await_accounting = await_accounting

    async def decide(
        self,
        record: Optional[RedirectRecord],
        intent: Intent,
        defer: Optional[Defer] = None
    ) -> Outcome:
        """
        Decide the outcome for a request.

        Args:
            record: Resolved record, or None when the slug could not be resolved
            intent: Preview or follow
            defer: Hook that runs the increment later (e.g. BackgroundTasks.add_task);
                   when omitted the increment is spawned as an asyncio task

        Returns:
            NotFound, PreviewPayload or RedirectTarget
        """
        if record is None:
            return NotFound()

        if intent is Intent.follow:
            await self._account(record.slug, defer)
            return RedirectTarget(url=record.url)

        return PreviewPayload.from_record(record)

    async def _account(self, slug: str, defer: Optional[Defer]) -> None:
        if self.await_accounting:
            await self.accounting.increment(slug)
            return

        try:
            if defer is not None:
                defer(self.accounting.increment, slug)
            else:
                self.accounting.spawn(slug)
        except Exception as e:
            # Scheduling problems cost a click, never the redirect
            logger.error(f"Could not schedule click accounting for '{slug}': {e}", exc_info=True)
