"""
Click Accounting Service

This service increments the click counter of a redirection.

Design Decisions:
- The increment is delegated to the store's atomic increment; the current
  count is never read into this process
- Best effort: one attempt per follow request, no retry queue, no
  deduplication of repeated follows
- Failures are logged and returned as a Failed result, never raised
- spawn() runs the attempt as a background task; pending tasks are kept
  referenced until done and drain() waits for them
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Set, Union

from redirections.core.exceptions import RecordNotFoundError, StoreUnavailableError
from redirections.db.interface import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Acknowledged:
    slug: str


@dataclass(frozen=True)
class Failed:
    slug: str
    reason: str


AccountingResult = Union[Acknowledged, Failed]


class ClickAccountingService:
    """
    Service for counting follow-throughs on redirections.
    """

    def __init__(self, store: RecordStore):
        """
        Args:
            store: Record store providing atomic_increment()
        """
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    async def increment(self, slug: str) -> AccountingResult:
        """
        Add one click to `slug` and bump its updated_at.

        Returns:
            Acknowledged on success, Failed(reason) otherwise
        """
        try:
            await self.store.atomic_increment(slug, field="clicks", delta=1)
        except RecordNotFoundError:
            # Deleted between resolve and increment
            logger.warning(f"Click not counted for '{slug}': record no longer exists")
            return Failed(slug, "record not found")
        except StoreUnavailableError as e:
            logger.error(f"Click not counted for '{slug}': {e}")
            return Failed(slug, str(e))
        except Exception as e:
            logger.error(f"Failed to increment clicks for '{slug}': {e}", exc_info=True)
            return Failed(slug, str(e))

        return Acknowledged(slug)

    def spawn(self, slug: str) -> asyncio.Task:
        """Schedule increment() on the running loop without waiting for it."""
        task = asyncio.get_running_loop().create_task(self.increment(slug))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every spawned increment to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending_count(self) -> int:
        return len(self._pending)
