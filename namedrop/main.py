"""
NameDrop.cv API

FastAPI backend for public CV profiles: tenant subdomain/custom-domain
rendering, the WordPress-backed blog, profile analytics and AI optimization.
"""

import logging
import time
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from namedrop.config import get_settings
from namedrop.middleware import (
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    TenantRoutingMiddleware,
)
from namedrop.routers import ai, blog, profiles
from namedrop.services import http_client
from namedrop.services.blog import get_blog_service
from namedrop.services.http_client import WordPressError
from namedrop.services.profile_store import (
    check_storage_connectivity,
    get_profile_store,
)

logger = logging.getLogger(__name__)

settings = get_settings()

VERSION = "0.1.0"

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    yield
    client = http_client._client
    if client is not None and not client.is_closed:
        await client.aclose()


app = FastAPI(
    title="NameDrop.cv API",
    description="Public CV profiles, blog content and profile analytics",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware added last runs first: CORS -> request ID -> security headers -> tenants
app.add_middleware(TenantRoutingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# Routers
app.include_router(blog.router, prefix="/api")
app.include_router(profiles.router, prefix="/api")
app.include_router(ai.router, prefix="/api")


def _check_config() -> str:
    """Verify required configuration is loaded. Returns 'ok' or 'fail'."""
    s = get_settings()
    if s.wordpress_base_url and s.main_domain:
        return "ok"
    return "fail"


async def _check_wordpress() -> str:
    try:
        await get_blog_service().client.get_categories()
    except WordPressError as e:
        logger.warning("WordPress health check failed: %s", e)
        return "fail"
    return "ok"


async def _run_health_checks() -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    checks = {
        "config": _check_config(),
        "storage": "ok" if check_storage_connectivity(get_profile_store()) else "fail",
        "wordpress": await _check_wordpress(),
    }
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "namedrop-api",
        "version": VERSION,
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Health check verifying service dependencies."""
    result = await _run_health_checks()
    status_code = 200 if result["status"] in ("ok", "degraded") else 503
    return JSONResponse(content=result, status_code=status_code)
