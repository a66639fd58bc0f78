"""
Unavailable Record Store

Stand-in installed when the real store cannot be configured (empty
DATABASE_URL, missing driver, unreachable database at startup). Every
operation raises StoreUnavailableError carrying the original reason, which
the redirect path turns into a 404 and logs as an infrastructure fault.
"""

from typing import Any, Dict, List, Optional

from redirections.core.exceptions import StoreUnavailableError
from redirections.db.change_feed import ChangeFeed, ChangeSubscription
from redirections.db.interface import RecordStore
from redirections.db.models import RedirectRecord


class UnavailableRecordStore(RecordStore):

    def __init__(self, reason: str, original_error: Optional[Exception] = None):
        self.reason = reason
        self.original_error = original_error
        self.feed = ChangeFeed()

    def _fail(self) -> StoreUnavailableError:
        return StoreUnavailableError(self.reason, original_error=self.original_error)

    async def get(self, slug: str) -> Optional[RedirectRecord]:
        raise self._fail()

    async def create(self, record: RedirectRecord) -> RedirectRecord:
        raise self._fail()

    async def update(self, slug: str, changes: Dict[str, Any]) -> RedirectRecord:
        raise self._fail()

    async def atomic_increment(self, slug: str, field: str = "clicks", delta: int = 1) -> None:
        raise self._fail()

    async def reset_clicks(self, slug: str) -> RedirectRecord:
        raise self._fail()

    async def delete(self, slug: str) -> None:
        raise self._fail()

    def watch(self) -> ChangeSubscription:
        # Nothing will ever be published; the subscription just stays quiet
        return self.feed.subscribe()

    async def list(self, order_by: str = "created_at", limit: Optional[int] = None) -> List[RedirectRecord]:
        raise self._fail()
