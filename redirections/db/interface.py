"""
Record Store Interface

This module defines the storage abstraction the redirections service is built
on. The redirect path only needs get() and atomic_increment(); the remaining
operations serve the admin surface.

Every method is a coroutine and may be slow. Implementations raise
StoreUnavailableError for infrastructure faults so callers can tell them
apart from a missing record.

To add a new storage backend:
1. Create a new class inheriting from RecordStore
2. Implement all abstract methods (atomic_increment must not read the
   counter into the process and write it back)
3. Return it from the store manager
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from redirections.db.change_feed import ChangeSubscription
from redirections.db.models import RedirectRecord


class RecordStore(ABC):
    """
    Abstract base class for redirection record stores.
    """

    @abstractmethod
    async def get(self, slug: str) -> Optional[RedirectRecord]:
        """
        Fetch the record stored under `slug`.

        Returns:
            A detached RedirectRecord, or None when the slug is absent
        """
        pass

    @abstractmethod
    async def create(self, record: RedirectRecord) -> RedirectRecord:
        """
        Insert a new record.

        Raises:
            SlugConflictError: If the slug already exists (never overwrites)
        """
        pass

    @abstractmethod
    async def update(self, slug: str, changes: dict[str, Any]) -> RedirectRecord:
        """
        Apply metadata changes to an existing record.

        `clicks` and `slug` are not accepted here.

        Raises:
            RecordNotFoundError: If the slug is absent
        """
        pass

    @abstractmethod
    async def atomic_increment(self, slug: str, field: str = "clicks", delta: int = 1) -> None:
        """
        Add `delta` to a counter and set updated_at to now, as one store operation.

        Raises:
            RecordNotFoundError: If the slug is absent
            ValueError: If `field` is not a counter or `delta` is below 1
        """
        pass

    @abstractmethod
    async def reset_clicks(self, slug: str) -> RedirectRecord:
        """
        Set the click counter back to zero.

        Raises:
            RecordNotFoundError: If the slug is absent
        """
        pass

    @abstractmethod
    async def delete(self, slug: str) -> None:
        """
        Remove a record immediately and permanently.

        Raises:
            RecordNotFoundError: If the slug is absent
        """
        pass

    @abstractmethod
    async def list(self, order_by: str = "created_at", limit: Optional[int] = None) -> list[RedirectRecord]:
        """
        List records, newest first ("created_at") or most clicked first ("clicks").
        """
        pass

    @abstractmethod
    def watch(self) -> ChangeSubscription:
        """
        Subscribe to changes made through this store.

        The subscription is registered before this call returns.
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        pass
