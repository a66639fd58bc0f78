"""
Admin Endpoints

Token-gated CRUD over redirection records plus login/logout.

Error mapping:
- InvalidRecordError     -> 422
- SlugConflictError      -> 409
- RecordNotFoundError    -> 404
- StoreUnavailableError  -> 503
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from redirections.api.deps import get_admin_service, get_identity_provider, oauth2_scheme, require_admin
from redirections.api.schemas import (
    LoginRequest,
    RedirectionCreateRequest,
    RedirectionListResponse,
    RedirectionResponse,
    RedirectionUpdateRequest,
    TokenResponse,
)
from redirections.core.exceptions import (
    InvalidRecordError,
    RecordNotFoundError,
    RedirectionsError,
    SlugConflictError,
    StoreUnavailableError,
)
from redirections.core.rate_limit import limiter, RATE_LIMITS
from redirections.services.admin_service import RedirectionAdminService
from redirections.services.identity import IdentityProvider, Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def to_http_error(error: RedirectionsError) -> HTTPException:
    if isinstance(error, InvalidRecordError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, SlugConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        logger.error(f"Admin request failed: {error}")
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Record store unavailable")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    body: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider)
) -> TokenResponse:
    principal = identity.authenticate(body.username, body.password)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=identity.issue_token(principal))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    principal: Principal = Depends(require_admin),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> Response:
    identity.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/redirections",
    response_model=RedirectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a redirection"
)
@limiter.limit(RATE_LIMITS["admin"])
async def create_redirection(
    request: Request,
    body: RedirectionCreateRequest,
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> RedirectionResponse:
    try:
        record = await service.create(body.model_dump())
    except RedirectionsError as e:
        raise to_http_error(e)
    return RedirectionResponse.from_record(record)


@router.get("/redirections", response_model=RedirectionListResponse, summary="List redirections")
@limiter.limit(RATE_LIMITS["admin"])
async def list_redirections(
    request: Request,
    order_by: str = Query("created_at", description="created_at (newest first) or clicks (most first)"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> RedirectionListResponse:
    try:
        records = await service.list(order_by=order_by, limit=limit)
    except RedirectionsError as e:
        raise to_http_error(e)
    items = [RedirectionResponse.from_record(r) for r in records]
    return RedirectionListResponse(items=items, total=len(items))


@router.get("/redirections/{slug}", response_model=RedirectionResponse, summary="Get a redirection")
@limiter.limit(RATE_LIMITS["admin"])
async def get_redirection(
    slug: str,
    request: Request,
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> RedirectionResponse:
    try:
        record = await service.get(slug)
    except RedirectionsError as e:
        raise to_http_error(e)
    if record is None:
        raise to_http_error(RecordNotFoundError(slug))
    return RedirectionResponse.from_record(record)


@router.patch("/redirections/{slug}", response_model=RedirectionResponse, summary="Edit metadata")
@limiter.limit(RATE_LIMITS["admin"])
async def update_redirection(
    slug: str,
    request: Request,
    body: RedirectionUpdateRequest,
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> RedirectionResponse:
    try:
        record = await service.update_metadata(slug, body.model_dump(exclude_unset=True))
    except RedirectionsError as e:
        raise to_http_error(e)
    return RedirectionResponse.from_record(record)


@router.post(
    "/redirections/{slug}/reset-clicks",
    response_model=RedirectionResponse,
    summary="Reset the click counter"
)
@limiter.limit(RATE_LIMITS["admin"])
async def reset_clicks(
    slug: str,
    request: Request,
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> RedirectionResponse:
    try:
        record = await service.reset_clicks(slug)
    except RedirectionsError as e:
        raise to_http_error(e)
    return RedirectionResponse.from_record(record)


@router.delete("/redirections/{slug}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a redirection")
@limiter.limit(RATE_LIMITS["admin"])
async def delete_redirection(
    slug: str,
    request: Request,
    principal: Principal = Depends(require_admin),
    service: RedirectionAdminService = Depends(get_admin_service)
) -> Response:
    try:
        await service.delete(slug)
    except RedirectionsError as e:
        raise to_http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
