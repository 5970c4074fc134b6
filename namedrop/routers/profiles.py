"""Public profile endpoints — JSON preview and link-click tracking."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Request

from namedrop.models.profile import LinkClickRequest, Profile
from namedrop.services.profile_store import ProfileStore, get_profile_store
from namedrop.services.tenant_routing import record_view

router = APIRouter(tags=["profiles"])
logger = logging.getLogger(__name__)

# In-memory rate limiter: {ip: [timestamps]}
_rate_limits: dict[str, list[float]] = defaultdict(list)
RATE_LIMIT_WINDOW = 60  # 1 minute
RATE_LIMIT_MAX = 20


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate limited."""
    now = time.time()
    cutoff = now - RATE_LIMIT_WINDOW
    _rate_limits[ip] = [ts for ts in _rate_limits[ip] if ts > cutoff]
    if len(_rate_limits[ip]) >= RATE_LIMIT_MAX:
        return False
    _rate_limits[ip].append(now)
    return True


@router.get("/preview/{slug}", response_model=Profile)
async def get_public_profile(
    request: Request,
    background_tasks: BackgroundTasks,
    slug: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=100),
    store: ProfileStore = Depends(get_profile_store),
):
    """Published profile as JSON, for the in-app preview page."""
    client_ip = request.client.host if request.client else "unknown"
    if not _check_rate_limit(client_ip):
        raise HTTPException(
            status_code=429, detail="Too many requests. Try again later."
        )

    try:
        profile = await store.get_profile_by_slug(slug)
    except Exception:
        logger.exception("Error fetching public profile %s", slug)
        raise HTTPException(status_code=500, detail="Failed to fetch profile")

    if profile is None or not profile.is_published:
        raise HTTPException(status_code=404, detail="Profile not found")

    background_tasks.add_task(
        record_view,
        store,
        profile.id,
        client_ip,
        request.headers.get("user-agent", ""),
        request.headers.get("referer"),
    )
    return profile


@router.post("/click/{profile_id}/{link_id}")
async def record_link_click(
    click: LinkClickRequest,
    request: Request,
    profile_id: int = Path(..., ge=1),
    link_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=100),
    store: ProfileStore = Depends(get_profile_store),
):
    """Record a click on one of a profile's link-in-bio tiles."""
    try:
        await store.record_link_click(
            profile_id,
            link_id,
            click.url,
            request.client.host if request.client else "",
            request.headers.get("user-agent", ""),
            request.headers.get("referer"),
        )
    except Exception:
        logger.exception("Error recording link click for profile %d", profile_id)
        raise HTTPException(status_code=500, detail="Failed to record click")
    return {"success": True}
