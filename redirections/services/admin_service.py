"""
Redirection Admin Service

This service handles administrator writes and listings of redirections:
- Validating record fields before they reach the store
- Applying write-time defaults (canonical URL, author, site name)
- Stamping timestamps
- Keeping the click counter out of metadata edits

Design Decisions:
- Defaults are resolved here, at write time; readers surface stored values
- Edits go through RecordStore.update(), which cannot touch clicks, so an
  edit never clobbers increments that happened while the editor was open
- Resetting clicks is its own operation
"""

import logging
from typing import Any, Dict, List, Optional

from redirections.core.exceptions import InvalidRecordError, RecordNotFoundError
from redirections.core.setting import settings
from redirections.core.validators import generate_slug, validate_record_fields
from redirections.db.interface import RecordStore
from redirections.db.models import METADATA_FIELDS, ContentType, RedirectRecord, utcnow

logger = logging.getLogger(__name__)

LIST_ORDERS = ("created_at", "clicks")


class RedirectionAdminService:
    """
    Administrator operations on redirection records.
    """

    def __init__(
        self,
        store: RecordStore,
        default_author: Optional[str] = None,
        default_site_name: Optional[str] = None
    ):
        """
        Args:
            store: Record store to write to
            default_author: Author stored when none is given (settings.DEFAULT_AUTHOR)
            default_site_name: Site name stored when none is given (settings.DEFAULT_SITE_NAME)
        """
        self.store = store
        self.default_author = default_author if default_author is not None else settings.DEFAULT_AUTHOR
        self.default_site_name = (
            default_site_name if default_site_name is not None else settings.DEFAULT_SITE_NAME
        )

    async def create(self, fields: Dict[str, Any]) -> RedirectRecord:
        """
        Create a new redirection.

        Args:
            fields: Record fields; `slug` may be omitted to derive it from `title`

        Returns:
            The stored record with clicks=0 and timestamps set

        Raises:
            InvalidRecordError: If a field fails validation
            SlugConflictError: If the slug is already taken
            StoreUnavailableError: If the store cannot be reached
        """
        data = {k: v for k, v in fields.items() if v is not None}
        data.pop("clicks", None)

        if not data.get("slug"):
            data["slug"] = generate_slug(data.get("title", ""))
            if not data["slug"]:
                raise InvalidRecordError("slug", "is required when the title has no usable characters")

        if "url" not in data:
            raise InvalidRecordError("url", "is required")

        validate_record_fields(data)

        now = utcnow()
        values = dict(data)
        values["canonical_url"] = values.get("canonical_url") or values["url"]
        values["author"] = values.get("author") or self.default_author
        values["site_name"] = values.get("site_name") or self.default_site_name
        values["content_type"] = ContentType(values.get("content_type", ContentType.website))
        values["published_time"] = values.get("published_time") or now
        values.update(clicks=0, created_at=now, updated_at=now)

        created = await self.store.create(RedirectRecord(**values))
        logger.info(f"Redirection created: {created.slug} -> {created.url}")
        return created

    async def get(self, slug: str) -> Optional[RedirectRecord]:
        return await self.store.get(slug)

    async def update_metadata(self, slug: str, changes: Dict[str, Any]) -> RedirectRecord:
        """
        Edit a redirection's metadata. The click counter is left alone.

        Raises:
            InvalidRecordError: If a field fails validation or is not editable
            RecordNotFoundError: If the slug does not exist
        """
        for name in ("slug", "clicks"):
            if name in changes:
                raise InvalidRecordError(name, "cannot be changed by an edit")

        unknown = set(changes) - set(METADATA_FIELDS)
        if unknown:
            raise InvalidRecordError(sorted(unknown)[0], "is not an editable field")

        values = {k: v for k, v in changes.items() if v is not None}
        validate_record_fields(values)

        if "canonical_url" in changes and not values.get("canonical_url"):
            values["canonical_url"] = values.get("url") or await self._current_url(slug)
        if "author" in changes and not values.get("author"):
            values["author"] = self.default_author
        if "site_name" in changes and not values.get("site_name"):
            values["site_name"] = self.default_site_name
        if "content_type" in values:
            values["content_type"] = ContentType(values["content_type"])

        now = utcnow()
        values.setdefault("modified_time", now)
        values["updated_at"] = now

        updated = await self.store.update(slug, values)
        logger.info(f"Redirection updated: {slug} ({', '.join(sorted(changes)) or 'no fields'})")
        return updated

    async def _current_url(self, slug: str) -> str:
        record = await self.store.get(slug)
        if record is None:
            raise RecordNotFoundError(slug)
        return record.url

    async def reset_clicks(self, slug: str) -> RedirectRecord:
        record = await self.store.reset_clicks(slug)
        logger.info(f"Click counter reset: {slug}")
        return record

    async def delete(self, slug: str) -> None:
        await self.store.delete(slug)
        logger.info(f"Redirection deleted: {slug}")

    async def list(self, order_by: str = "created_at", limit: Optional[int] = None) -> List[RedirectRecord]:
        if order_by not in LIST_ORDERS:
            raise InvalidRecordError("order_by", f"must be one of {', '.join(LIST_ORDERS)}")
        return await self.store.list(order_by=order_by, limit=limit)
