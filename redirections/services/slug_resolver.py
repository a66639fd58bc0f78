"""
Slug Resolver

Read path of the redirect flow: slug in, record (or None) out.

- The slug is used exactly as received; no case folding or trimming
- An absent slug and a broken store both come back as None, but they are
  logged differently so operators can spot misconfiguration separately from
  normal 404 traffic
- Never raises
"""

import logging
from typing import Optional

from redirections.core.exceptions import StoreUnavailableError
from redirections.db.interface import RecordStore
from redirections.db.models import RedirectRecord

logger = logging.getLogger(__name__)


class SlugResolver:
    """Looks up redirect records by slug."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve(self, slug: str) -> Optional[RedirectRecord]:
        """
        Resolve a slug to its stored record.

        Args:
            slug: Path segment from the request, unmodified

        Returns:
            The stored RedirectRecord, or None when it cannot be resolved
        """
        try:
            record = await self.store.get(slug)
        except StoreUnavailableError as e:
            logger.error(f"Store unavailable while resolving '{slug}': {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected store fault while resolving '{slug}': {e}", exc_info=True)
            return None

        if record is None:
            logger.debug(f"Slug '{slug}' not found")
        return record
