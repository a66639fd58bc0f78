"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (public redirections, admin)
- Middleware (logging, CORS, rate limiting)
- Record store lifecycle

Run with:
    uvicorn redirections.main:app
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from redirections.api import admin, endpoints
from redirections.api.deps import get_store
from redirections.core.logging_config import configure_logging
from redirections.core.rate_limit import limiter
from redirections.core.store_manager import initialize_store, shutdown_store
from redirections.db.interface import RecordStore
from redirections.db.unavailable_store import UnavailableRecordStore
from redirections.middleware.logging import add_logging_middleware
from redirections.services.identity import identity_provider

logger = configure_logging()

app = FastAPI(
    title="Redirections Service",
    description="Slug redirections with SEO previews and click counting",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.
    """
    return {
        "message": "Redirections Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check(store: RecordStore = Depends(get_store)):
    """
    Health check endpoint for monitoring.

    The service stays up without a store (redirects answer 404), so the
    store status is reported rather than failing the check.
    """
    if isinstance(store, UnavailableRecordStore):
        return {"status": "degraded", "store": "unavailable", "reason": store.reason}
    return {"status": "healthy", "store": type(store).__name__}


app.include_router(endpoints.router, tags=["Redirections"])
app.include_router(admin.router)


@app.on_event("startup")
async def startup_event():
    """Initialize the record store on startup."""
    await initialize_store()
    if not identity_provider.enabled:
        logger.warning("Admin routes are disabled: set ADMIN_PASSWORD and SECRET_KEY to enable them")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the record store on shutdown."""
    await shutdown_store()
