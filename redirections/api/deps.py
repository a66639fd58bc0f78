"""
FastAPI dependencies shared by the public and admin routers.

Tests swap the store by overriding get_store in app.dependency_overrides.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from redirections.core.setting import settings
from redirections.core.store_manager import get_record_store
from redirections.db.interface import RecordStore
from redirections.services.admin_service import RedirectionAdminService
from redirections.services.identity import IdentityProvider, Principal, identity_provider
from redirections.services.redirect_service import RedirectService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/admin/login", auto_error=False)


def get_store() -> RecordStore:
    return get_record_store()


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def get_redirect_service(store: RecordStore = Depends(get_store)) -> RedirectService:
    return RedirectService(store, await_accounting=settings.AWAIT_CLICK_ACCOUNTING)


def get_admin_service(store: RecordStore = Depends(get_store)) -> RedirectionAdminService:
    return RedirectionAdminService(store)


def require_admin(
    token: str = Depends(oauth2_scheme),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> Principal:
    """Reject the request with 401 unless it carries a valid admin token."""
    principal = identity.verify(token) if token else None
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal
