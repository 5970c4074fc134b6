"""AI content optimization endpoints, rate limited per client IP."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, HTTPException, Request

from namedrop.config import get_settings
from namedrop.models.optimization import (
    CVOptimizationResult,
    ProfileSnapshot,
    SummaryRequest,
    SummaryResponse,
)
from namedrop.services.content_optimizer import (
    ContentOptimizationError,
    generate_professional_summary,
    optimize_profile,
)

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)

# In-memory rate limiter: {ip: [timestamps]}
_rate_limits: dict[str, list[float]] = defaultdict(list)
RATE_LIMIT_WINDOW = 3600  # 1 hour
RATE_LIMIT_MAX = 10


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate limited."""
    now = time.time()
    cutoff = now - RATE_LIMIT_WINDOW
    _rate_limits[ip] = [ts for ts in _rate_limits[ip] if ts > cutoff]
    if len(_rate_limits[ip]) >= RATE_LIMIT_MAX:
        return False
    _rate_limits[ip].append(now)
    return True


def _guard(request: Request) -> None:
    if not get_settings().openai_api_key:
        raise HTTPException(
            status_code=503, detail="AI optimization is not configured."
        )
    client_ip = request.client.host if request.client else "unknown"
    if not _check_rate_limit(client_ip):
        raise HTTPException(
            status_code=429, detail="Too many optimization requests. Try again later."
        )


@router.post("/optimize", response_model=CVOptimizationResult)
async def optimize(snapshot: ProfileSnapshot, request: Request):
    """Score a profile snapshot and suggest improvements."""
    _guard(request)
    try:
        return await optimize_profile(snapshot)
    except ContentOptimizationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/summary", response_model=SummaryResponse)
async def summary(body: SummaryRequest, request: Request):
    """Generate a professional summary from work history and skills."""
    _guard(request)
    try:
        text = await generate_professional_summary(body.work_history, body.skills)
    except ContentOptimizationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return SummaryResponse(summary=text)
