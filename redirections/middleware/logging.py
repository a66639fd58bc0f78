"""
Request Logging Middleware

One access-log line per request on the "redirections" logger:

    <request id> METHOD PATH [intent] STATUS TIME_MS IP:<client>

- 5xx responses log at ERROR, 4xx at WARNING, the rest at INFO
- Requests to /redirections/{slug} carry their intent (preview / follow), so
  follow-through volume can be read from the access log even when click
  accounting is failing
- Every response gets X-Process-Time and X-Request-ID headers; an incoming
  X-Request-ID is reused
"""

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from redirections.services.decision_engine import Intent

logger = logging.getLogger("redirections")

REQUEST_ID_HEADER = "X-Request-ID"


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def describe_intent(request: Request) -> str:
    if not request.url.path.startswith("/redirections/"):
        return ""
    return f" [{Intent.from_query(request.query_params.get('redirect')).value}]"


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access logging with request ids and timing headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        client_ip = get_client_ip(request)
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        logger.log(
            level_for_status(response.status_code),
            f"{request_id} {request.method} {request.url.path}{describe_intent(request)} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{client_ip}"
        )

        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def add_logging_middleware(app):
    """
    Add logging middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(LoggingMiddleware)
