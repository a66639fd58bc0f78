"""
Change Feed

In-process fan-out of record changes, backing RecordStore.watch().

Each subscriber owns a bounded queue. Publishing never blocks: when a
subscriber's queue is full the event is dropped for that subscriber and a
warning is logged, so a slow admin listener cannot stall the redirect path.
Subscribers that need a full picture after a drop should call list() again.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from redirections.db.models import RedirectRecord, utcnow

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    created = "created"
    updated = "updated"
    clicked = "clicked"
    deleted = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    slug: str
    record: Optional[RedirectRecord] = None
    occurred_at: datetime = field(default_factory=utcnow)


class ChangeSubscription:
    """Async iterator over change events for one subscriber."""

    def __init__(self, feed: "ChangeFeed", max_queue: int):
        self._feed = feed
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self.closed = False

    def _offer(self, event: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Change feed subscriber is full, dropping {event.kind.value} event for {event.slug}")

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def next(self, timeout: Optional[float] = None) -> ChangeEvent:
        """Wait for the next event, raising asyncio.TimeoutError after `timeout` seconds."""
        return await asyncio.wait_for(self.__anext__(), timeout)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._unsubscribe(self)
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass


class ChangeFeed:
    """Publishes ChangeEvents to every open subscription."""

    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._subscribers: set[ChangeSubscription] = set()

    def subscribe(self) -> ChangeSubscription:
        subscription = ChangeSubscription(self, self.max_queue)
        self._subscribers.add(subscription)
        return subscription

    def _unsubscribe(self, subscription: ChangeSubscription) -> None:
        self._subscribers.discard(subscription)

    def publish(self, kind: ChangeKind, slug: str, record: Optional[RedirectRecord] = None) -> None:
        if not self._subscribers:
            return
        event = ChangeEvent(kind=kind, slug=slug, record=record)
        for subscription in list(self._subscribers):
            subscription._offer(event)

    def close(self) -> None:
        for subscription in list(self._subscribers):
            subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
