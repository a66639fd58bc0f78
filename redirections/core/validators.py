"""
Input Validators and Sanitizers

This module provides validation functions for redirection records written
by administrators, plus slug generation from a title.

Security Considerations:
- Only http/https destinations are accepted
- Slugs are restricted to lowercase letters, digits and hyphens
- Length limits keep records bounded
"""

import re
from urllib.parse import urlparse

from redirections.core.exceptions import InvalidRecordError
from redirections.db.models import ContentType

SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')
MAX_SLUG_LENGTH = 100
MAX_URL_LENGTH = 2048
MAX_TITLE_LENGTH = 160
MAX_DESCRIPTION_LENGTH = 300


def is_valid_slug(slug: str) -> bool:
    """
    Check slug format: lowercase letters, digits and hyphens only.

    No normalization is applied; "Launch" is not a valid slug.
    """
    if not slug or not isinstance(slug, str):
        return False
    if len(slug) > MAX_SLUG_LENGTH:
        return False
    return SLUG_PATTERN.match(slug) is not None


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL uses http/https, has valid domain, and doesn't contain
    malicious patterns. Prevents javascript:, file:, and other dangerous schemes.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if not result.scheme or not result.netloc:
        return False

    if result.scheme.lower() not in {'http', 'https'}:
        return False

    domain = result.netloc.split(':')[0]
    if domain != 'localhost' and '.' not in domain:
        return False

    malicious_patterns = ['javascript:', 'data:', 'file:', 'vbscript:']
    url_lower = url.lower()
    return not any(pattern in url_lower for pattern in malicious_patterns)


def generate_slug(title: str) -> str:
    """
    Derive a URL-safe slug from a title.

    Example:
        generate_slug("Launch Day: What's New!") -> "launch-day-whats-new"
    """
    slug = title.lower()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')[:MAX_SLUG_LENGTH]


def validate_record_fields(fields: dict) -> None:
    """
    Validate the writable fields of a redirection record.

    Only the keys present in `fields` are checked, so the same function
    serves full creates and partial edits.

    Raises:
        InvalidRecordError: On the first field that fails validation
    """
    if "slug" in fields and not is_valid_slug(fields["slug"]):
        raise InvalidRecordError(
            "slug",
            "must contain only lowercase letters, numbers, and hyphens"
        )

    if "url" in fields and not is_valid_url(fields["url"]):
        raise InvalidRecordError(
            "url",
            "must use http:// or https:// and have a valid domain"
        )

    for name in ("image_url", "canonical_url"):
        value = fields.get(name)
        if value and not is_valid_url(value):
            raise InvalidRecordError(name, "must be a valid http(s) URL")

    content_type = fields.get("content_type")
    if content_type is not None:
        value = getattr(content_type, "value", content_type)
        if value not in {c.value for c in ContentType}:
            raise InvalidRecordError(
                "content_type",
                f"must be one of {', '.join(c.value for c in ContentType)}"
            )

    title = fields.get("title")
    if title is not None and len(title) > MAX_TITLE_LENGTH:
        raise InvalidRecordError("title", f"must be {MAX_TITLE_LENGTH} characters or less")

    description = fields.get("description")
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidRecordError(
            "description",
            f"must be {MAX_DESCRIPTION_LENGTH} characters or less"
        )
