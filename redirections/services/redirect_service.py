"""
Redirect Service

This service handles the public redirection flow:
slug -> SlugResolver -> RedirectDecisionEngine -> outcome.

It also serves the public index of redirections. Like resolution, the index
degrades instead of failing: a store fault is logged and yields an empty list.

Design Decisions:
- Resolution, decision and accounting are separate classes so each can be
  tested and replaced on its own
- Redirect resolution requires no authentication
"""

import logging
from typing import List, Optional

from redirections.core.exceptions import StoreUnavailableError
from redirections.db.interface import RecordStore
from redirections.db.models import RedirectRecord
from redirections.services.click_accounting import ClickAccountingService
from redirections.services.decision_engine import Defer, Intent, NotFound, Outcome, RedirectDecisionEngine
from redirections.services.slug_resolver import SlugResolver

logger = logging.getLogger(__name__)


class RedirectService:
    """
    Service for handling redirection requests.
    """

    def __init__(
        self,
        store: RecordStore,
        accounting: Optional[ClickAccountingService] = None,
        await_accounting: bool = False
    ):
        """
        Initialize the redirect service.

        Args:
            store: Record store to resolve slugs against
            accounting: Click accounting service (one is built on `store` if omitted)
            await_accounting: Wait for the click increment before answering follows
        """
        self.store = store
        self.resolver = SlugResolver(store)
        self.accounting = accounting or ClickAccountingService(store)
        self.engine = RedirectDecisionEngine(self.accounting, await_accounting=await_accounting)

    async def handle(self, slug: str, intent: Intent, defer: Optional[Defer] = None) -> Outcome:
        """
        Resolve `slug` and decide the response for `intent`.
        """
        record = await self.resolver.resolve(slug)
        outcome = await self.engine.decide(record, intent, defer=defer)
        if isinstance(outcome, NotFound):
            return NotFound(slug)
        return outcome

    async def index(self, order_by: str = "created_at", limit: Optional[int] = None) -> List[RedirectRecord]:
        """
        List redirections for the public index, newest (or most clicked) first.

        Returns:
            The records, or an empty list when the store cannot be read
        """
        try:
            return await self.store.list(order_by=order_by, limit=limit)
        except StoreUnavailableError as e:
            logger.error(f"Store unavailable while listing redirections: {e}")
        except Exception as e:
            logger.error(f"Unexpected error listing redirections: {e}", exc_info=True)
        return []
