"""
Public Redirection Endpoints

GET /redirections
    - public index: summary of every redirection, newest or most clicked first

GET /redirections/{slug}
    - default: JSON preview of the record (title, description, image,
      keywords, author, site/content type, timestamps, clicks)
    - ?redirect=true: HTTP 302 to the destination; the click is counted in
      a background task after the response is sent
    - unresolvable slug: 404 for both intents

No authentication: anyone holding a slug may preview or follow it.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from redirections.api.deps import get_redirect_service
from redirections.api.schemas import PreviewResponse, RedirectionIndexResponse, RedirectionSummary
from redirections.core.rate_limit import limiter, RATE_LIMITS
from redirections.core.setting import settings
from redirections.services.decision_engine import Intent, PreviewPayload, RedirectTarget
from redirections.services.redirect_service import RedirectService

router = APIRouter()


@router.get(
    "/redirections",
    response_model=RedirectionIndexResponse,
    summary="List redirections",
    description="Public index of every redirection with its preview and follow links",
)
@limiter.limit(RATE_LIMITS["resolve"])
async def redirection_index(
    request: Request,
    order_by: str = Query("created_at", pattern="^(created_at|clicks)$"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: RedirectService = Depends(get_redirect_service)
) -> RedirectionIndexResponse:
    records = await service.index(order_by=order_by, limit=limit)
    items = [RedirectionSummary.from_record(r, settings.BASE_URL) for r in records]
    return RedirectionIndexResponse(items=items, total=len(items))


@router.get(
    "/redirections/{slug}",
    response_model=PreviewResponse,
    summary="Preview or follow a redirection",
    description="Returns the preview metadata, or redirects to the destination when redirect=true",
    responses={302: {"description": "Redirect to the destination URL"}, 404: {"description": "Unknown slug"}},
)
@limiter.limit(RATE_LIMITS["resolve"])
async def resolve_redirection(
    slug: str,
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    background_tasks: BackgroundTasks,
    redirect: Optional[str] = Query(None, description='"true" redirects and counts a click'),
    service: RedirectService = Depends(get_redirect_service)
):
    """
    Resolve a slug to a preview or a redirect.

    Raises:
        HTTPException 404: If the slug cannot be resolved
        HTTPException 429: If rate limit exceeded
    """
    intent = Intent.from_query(redirect)
    outcome = await service.handle(slug, intent, defer=background_tasks.add_task)

    if isinstance(outcome, RedirectTarget):
        return RedirectResponse(url=outcome.url, status_code=status.HTTP_302_FOUND)

    if isinstance(outcome, PreviewPayload):
        return PreviewResponse.from_payload(outcome, settings.BASE_URL)

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Redirection '{slug}' not found"
    )
