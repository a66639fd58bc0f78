"""
Rate Limiting Configuration

This module provides rate limiting for API endpoints.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for the public redirect route and the admin routes
- IP-based limiting
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "resolve": "100/minute",  # Preview and follow requests per IP
    "admin": "60/minute",  # Admin CRUD per IP
    "login": "10/minute",  # Credential attempts per IP
}
