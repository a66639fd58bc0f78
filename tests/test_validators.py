"""
Tests for record validation and slug generation.
"""

import pytest

from redirections.core.exceptions import InvalidRecordError
from redirections.core.validators import (
    generate_slug,
    is_valid_slug,
    is_valid_url,
    validate_record_fields,
)


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        """Test that valid URLs are accepted."""
        valid_urls = [
            "http://example.com",
            "https://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "http://localhost:3000/preview",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        """Test that invalid URLs are rejected."""
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",  # FTP not supported
            "example.com",  # Missing scheme
            "",
            "http://",  # Missing domain
            "javascript:alert(1)",
            "https://example.com/" + "a" * 2100,
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"


class TestSlugValidation:
    """Slugs are lowercase letters, digits and hyphens, taken verbatim."""

    def test_valid_slugs(self):
        for slug in ["launch", "launch-2024", "a", "0-0"]:
            assert is_valid_slug(slug), f"Should be valid: {slug}"

    def test_invalid_slugs(self):
        for slug in ["Launch", "launch day", "launch_day", "", " launch", "émoji", "a" * 101]:
            assert not is_valid_slug(slug), f"Should be invalid: {slug}"


class TestGenerateSlug:

    def test_basic_title(self):
        assert generate_slug("Launch Day: What's New!") == "launch-day-whats-new"

    def test_collapses_separators(self):
        assert generate_slug("  Spring   --  Sale  ") == "spring-sale"

    def test_nothing_usable(self):
        assert generate_slug("!!!") == ""


class TestValidateRecordFields:

    def test_accepts_complete_record(self):
        validate_record_fields({
            "slug": "launch",
            "url": "https://example.com/a",
            "image_url": "https://example.com/og.png",
            "canonical_url": "",
            "title": "Launch",
            "description": "Short",
            "content_type": "blog",
        })

    def test_rejects_bad_slug(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            validate_record_fields({"slug": "Bad Slug", "url": "https://example.com"})
        assert exc_info.value.field == "slug"

    def test_rejects_bad_image_url(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            validate_record_fields({"image_url": "not-a-url"})
        assert exc_info.value.field == "image_url"

    def test_rejects_long_title(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            validate_record_fields({"title": "x" * 161})
        assert exc_info.value.field == "title"

    def test_rejects_long_description(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            validate_record_fields({"description": "x" * 301})
        assert exc_info.value.field == "description"

    def test_rejects_unknown_content_type(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            validate_record_fields({"content_type": "video"})
        assert exc_info.value.field == "content_type"

    def test_partial_fields_only_check_what_is_present(self):
        validate_record_fields({"title": "New title"})
