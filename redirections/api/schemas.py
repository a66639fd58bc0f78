"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from redirections.db.models import ContentType, RedirectRecord
from redirections.services.decision_engine import PreviewPayload


class PreviewResponse(BaseModel):
    """Interstitial preview of a redirection."""
    slug: str
    title: str
    description: str
    image_url: str
    keywords: List[str] = Field(..., description="Keywords split on commas")
    keywords_raw: str = Field(..., description="Keywords exactly as stored")
    author: str
    site_name: str
    content_type: ContentType
    canonical_url: str
    published_time: Optional[datetime] = None
    modified_time: Optional[datetime] = Field(
        None, description="Stored modified time, falling back to the last update"
    )
    clicks: int = Field(..., description="Visitors who continued to the destination")
    follow_url: str = Field(..., description="URL that redirects and counts a click")

    @classmethod
    def from_payload(cls, payload: PreviewPayload, base_url: str) -> "PreviewResponse":
        return cls(
            slug=payload.slug,
            title=payload.title,
            description=payload.description,
            image_url=payload.image_url,
            keywords=payload.keywords,
            keywords_raw=payload.keywords_raw,
            author=payload.author,
            site_name=payload.site_name,
            content_type=payload.content_type,
            canonical_url=payload.canonical_url,
            published_time=payload.published_time,
            modified_time=payload.modified_time or payload.updated_at,
            clicks=payload.clicks,
            follow_url=f"{base_url.rstrip('/')}/redirections/{payload.slug}?redirect=true",
        )


class RedirectionSummary(BaseModel):
    """One entry of the public index."""
    slug: str
    title: str
    description: str
    image_url: str
    keywords: List[str]
    site_name: str
    content_type: ContentType
    clicks: int
    preview_url: str
    follow_url: str

    @classmethod
    def from_record(cls, record: RedirectRecord, base_url: str) -> "RedirectionSummary":
        preview_url = f"{base_url.rstrip('/')}/redirections/{record.slug}"
        return cls(
            slug=record.slug,
            title=record.title,
            description=record.description,
            image_url=record.image_url,
            keywords=record.keyword_list,
            site_name=record.site_name,
            content_type=record.content_type,
            clicks=record.clicks,
            preview_url=preview_url,
            follow_url=f"{preview_url}?redirect=true",
        )


class RedirectionIndexResponse(BaseModel):
    items: List[RedirectionSummary]
    total: int


class RedirectionCreateRequest(BaseModel):
    """Request model for creating a redirection."""
    slug: Optional[str] = Field(None, description="Lowercase letters, digits and hyphens; derived from title if omitted")
    url: str = Field(..., description="Destination URL")
    title: str = Field(..., max_length=160)
    description: str = Field("", max_length=300)
    image_url: str = Field("", description="Open Graph image URL")
    keywords: str = Field("", description="Comma separated keywords")
    site_name: Optional[str] = None
    content_type: ContentType = ContentType.website
    canonical_url: Optional[str] = Field(None, description="Defaults to url")
    author: Optional[str] = Field(None, description="Defaults to the configured author")


class RedirectionUpdateRequest(BaseModel):
    """Request model for editing metadata. Omitted fields stay unchanged."""
    url: Optional[str] = None
    title: Optional[str] = Field(None, max_length=160)
    description: Optional[str] = Field(None, max_length=300)
    image_url: Optional[str] = None
    keywords: Optional[str] = None
    site_name: Optional[str] = None
    content_type: Optional[ContentType] = None
    canonical_url: Optional[str] = None
    author: Optional[str] = None


class RedirectionResponse(BaseModel):
    """Full redirection record as seen by administrators."""
    slug: str
    url: str
    title: str
    description: str
    image_url: str
    keywords: str
    site_name: str
    content_type: ContentType
    canonical_url: str
    author: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None
    clicks: int

    @classmethod
    def from_record(cls, record: RedirectRecord) -> "RedirectionResponse":
        return cls(**record.model_dump())


class RedirectionListResponse(BaseModel):
    items: List[RedirectionResponse]
    total: int


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
