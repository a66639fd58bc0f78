"""
Custom Exceptions

This module defines the error taxonomy of the redirections service.

- RecordNotFoundError: a write path addressed a slug that does not exist
- StoreUnavailableError: the record store is unreachable or misconfigured
- InvalidRecordError: a record failed validation before reaching the store
- SlugConflictError: a create targeted a slug that is already taken

Click accounting failures are not raised; they are returned as values by
the click accounting service.
"""

from typing import Optional


class RedirectionsError(Exception):
    """Base exception for the redirections service."""
    pass


class RecordNotFoundError(RedirectionsError):
    """Raised when a slug is not present in the record store."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Redirection '{slug}' not found")


class StoreUnavailableError(RedirectionsError):
    """Raised when the record store cannot be reached or is not configured."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Record store unavailable: {message}")


class InvalidRecordError(RedirectionsError):
    """Raised when record validation fails."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid '{field}': {reason}")


class SlugConflictError(RedirectionsError):
    """Raised when creating a record whose slug already exists."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already in use")
