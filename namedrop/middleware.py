"""Middleware — request IDs, security headers, tenant routing."""

import logging
import uuid
from contextvars import ContextVar

from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response

from namedrop.config import get_settings
from namedrop.services.profile_store import get_profile_store
from namedrop.services.tenant_routing import (
    RouteKind,
    classify_host,
    record_view,
    render_not_found_page,
    render_profile_page,
    resolve_tenant,
)

logger = logging.getLogger(__name__)

# Context var accessible from anywhere during a request lifecycle
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a unique request ID to every request/response cycle.

    Reads ``X-Request-ID`` from the incoming request headers; if absent,
    generates a new UUID4.  The ID is stored in a context variable so that
    logging and error handlers can include it, and is echoed back on the
    response as ``X-Request-ID``.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(rid)

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class TenantRoutingMiddleware(BaseHTTPMiddleware):
    """Serve published profiles on tenant subdomains and custom domains.

    Platform requests pass through untouched.  A resolved tenant gets the
    server-rendered profile shell; the view is recorded in a background task
    after the response is sent.  Anything else that looks like a tenant gets
    a static HTML 404 page.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        settings = get_settings()
        host = request.headers.get("host", "")
        kind, slug = classify_host(host, request.url.path, settings)
        if kind is RouteKind.PLATFORM:
            return await call_next(request)

        store = get_profile_store()
        try:
            kind, profile = await resolve_tenant(host, slug, store, settings)
        except Exception:
            logger.exception("Domain routing error for host %s", host)
            kind, profile = RouteKind.UNRESOLVED, None

        if profile is None:
            logger.info("No published profile for host %s", host)
            return HTMLResponse(render_not_found_page(settings), status_code=404)

        logger.info("Serving profile %s for host %s (%s)", profile.slug, host, kind.value)
        task = BackgroundTask(
            record_view,
            store,
            profile.id,
            request.client.host if request.client else "",
            request.headers.get("user-agent", ""),
            request.headers.get("referer"),
        )
        return HTMLResponse(
            render_profile_page(profile, host, settings), background=task
        )
