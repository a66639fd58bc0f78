"""
Database Models for the Redirections Service

This module defines:
- RedirectRecord: the plain record type every store hands out
- Redirection: the SQLModel table backing the SQL record store

Design Decisions:
- slug is the primary key (it is also the public lookup key)
- clicks is a plain integer column; it is only ever changed with
  "clicks = clicks + delta" statements, never written from a value read earlier
- Defaults for canonical_url, author and site_name are applied by writers,
  so the columns hold exactly what readers will see
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import String, DateTime, Integer, Text


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored in UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ContentType(str, Enum):
    """Open Graph content type of the destination."""
    website = "website"
    article = "article"
    blog = "blog"
    product = "product"


# Fields an administrator may change after creation
METADATA_FIELDS = (
    "url",
    "title",
    "description",
    "image_url",
    "keywords",
    "site_name",
    "content_type",
    "canonical_url",
    "author",
    "published_time",
    "modified_time",
)

TIMESTAMP_FIELDS = ("created_at", "updated_at", "published_time", "modified_time")

# Fields changed only through RecordStore.atomic_increment
COUNTER_FIELDS = ("clicks",)


class RedirectRecord(SQLModel):
    """
    A redirection as seen by the rest of the application.

    Stores return detached copies; mutating one never changes stored state.
    """
    slug: str
    url: str
    title: str = ""
    description: str = ""
    image_url: str = ""
    keywords: str = ""
    site_name: str = ""
    content_type: ContentType = ContentType.website
    canonical_url: str = ""
    author: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None
    clicks: int = 0

    @property
    def keyword_list(self) -> list[str]:
        return [k.strip() for k in self.keywords.split(",") if k.strip()]


class Redirection(SQLModel, table=True):
    """
    Table storing redirections keyed by slug.

    Indexes:
    - slug: primary key, the only lookup on the public path
    - created_at: admin listing order
    - clicks: most-clicked listing order
    """
    __tablename__ = "redirections"

    slug: str = Field(
        sa_column=Column(String(100), primary_key=True),
        max_length=100
    )
    url: str = Field(sa_column=Column(Text, nullable=False))
    title: str = Field(default="", sa_column=Column(String(160), nullable=False, default=""))
    description: str = Field(default="", sa_column=Column(String(300), nullable=False, default=""))
    image_url: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    keywords: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    site_name: str = Field(default="", sa_column=Column(String(100), nullable=False, default=""))
    content_type: str = Field(
        default=ContentType.website.value,
        sa_column=Column(String(20), nullable=False, default=ContentType.website.value)
    )
    canonical_url: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    author: str = Field(default="", sa_column=Column(String(100), nullable=False, default=""))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    published_time: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    modified_time: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    clicks: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0, index=True))

    def to_record(self) -> RedirectRecord:
        data = self.model_dump()
        # SQLite drops the offset on the way out
        for name in TIMESTAMP_FIELDS:
            data[name] = as_utc(data.get(name))
        return RedirectRecord.model_validate(data)

    @classmethod
    def from_record(cls, record: RedirectRecord) -> "Redirection":
        data = record.model_dump(exclude_none=True)
        data["content_type"] = ContentType(record.content_type).value
        for name in TIMESTAMP_FIELDS:
            if name in data:
                data[name] = as_utc(data[name])
        return cls(**data)
