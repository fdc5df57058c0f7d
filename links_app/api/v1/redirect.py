import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse

from links_app.dependencies import get_resolver
from links_app.services.resolver import ResolveOutcome, Resolver


logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])

_FAILURES = {
    ResolveOutcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Link not found"),
    ResolveOutcome.INACTIVE: (status.HTTP_410_GONE, "Link is inactive"),
    ResolveOutcome.EXPIRED: (status.HTTP_410_GONE, "Link has expired"),
}


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    resolver: Resolver = Depends(get_resolver),
):
    """
    Redirect to the link's destination.

    Flow:
    1. Look the code up (404 unknown, 410 inactive or expired)
    2. Hand the click to the dispatcher without waiting for the increment
    3. Redirect immediately with 301
    """
    try:
        resolution = await resolver.resolve(short_code)
    except Exception:
        logger.exception("Error resolving short code %r", short_code)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    if resolution.outcome in _FAILURES:
        status_code, message = _FAILURES[resolution.outcome]
        return JSONResponse(status_code=status_code, content={"error": message})

    return RedirectResponse(url=resolution.url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
