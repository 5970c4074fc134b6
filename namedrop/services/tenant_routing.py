"""Tenant routing — map inbound hosts to published profiles and render them.

A request is classified from its Host header and path:

- ``PLATFORM``: the app itself (localhost, dev/preview hosts, API and asset
  paths, the main domain and its ``www`` variant).  Passed through.
- ``TENANT_SUBDOMAIN``: ``{slug}.{main_domain}`` with a published profile.
- ``CUSTOM_DOMAIN``: a verified custom domain of a published profile.
- ``UNRESOLVED``: looked like a tenant but nothing matched.  Answered 404.
"""

import enum
import html
import ipaddress
import json
import logging

from namedrop.config import Settings
from namedrop.models.profile import Profile
from namedrop.services.profile_store import ProfileStore, normalize_host

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = {"localhost", "0.0.0.0"}
PLATFORM_PATH_PREFIXES = (
    "/api/",
    "/assets/",
    "/static/",
    "/@vite/",
    "/src/",
    "/node_modules/",
)
PLATFORM_PATHS = {
    "/api",
    "/favicon.ico",
    "/robots.txt",
    "/sitemap.xml",
    "/docs",
    "/redoc",
    "/openapi.json",
}

CLIENT_BUNDLE_JS = "/assets/index.js"
CLIENT_BUNDLE_CSS = "/assets/index.css"

# Characters that must not appear raw inside an inline <script>
_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class RouteKind(enum.Enum):
    PLATFORM = "platform"
    TENANT_CANDIDATE = "tenant_candidate"
    TENANT_SUBDOMAIN = "tenant_subdomain"
    CUSTOM_DOMAIN = "custom_domain"
    UNRESOLVED = "unresolved"


def _is_loopback(hostname: str) -> bool:
    if hostname in LOOPBACK_HOSTS or hostname.endswith(".localhost"):
        return True
    try:
        return ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return False


def _is_platform_path(path: str) -> bool:
    return path in PLATFORM_PATHS or path.startswith(PLATFORM_PATH_PREFIXES)


def classify_host(host: str, path: str, settings: Settings) -> tuple[RouteKind, str | None]:
    """Decide whether a request belongs to the platform or may be a tenant.

    Returns ``(RouteKind.PLATFORM, None)`` or
    ``(RouteKind.TENANT_CANDIDATE, leftmost_label)``.
    """
    hostname = normalize_host(host)
    main = settings.main_domain.lower()

    if not hostname or _is_loopback(hostname):
        return RouteKind.PLATFORM, None
    if any(hostname.endswith(suffix) for suffix in settings.dev_host_suffixes):
        return RouteKind.PLATFORM, None
    if _is_platform_path(path):
        return RouteKind.PLATFORM, None
    if hostname in (main, f"www.{main}"):
        return RouteKind.PLATFORM, None

    return RouteKind.TENANT_CANDIDATE, hostname.split(".", 1)[0]


async def resolve_tenant(
    host: str, slug: str | None, store: ProfileStore, settings: Settings
) -> tuple[RouteKind, Profile | None]:
    """Resolve a tenant host to a published profile.

    *slug* is the candidate label from ``classify_host``.  It is looked up
    first, but only when the host is a subdomain of the main domain.
    Any host is then tried as a custom domain.  Unpublished profiles never
    resolve.
    """
    hostname = normalize_host(host)
    main = settings.main_domain.lower()

    if slug and hostname.endswith(f".{main}"):
        profile = await store.get_profile_by_slug(slug)
        if profile is not None and profile.is_published:
            return RouteKind.TENANT_SUBDOMAIN, profile

    profile = await store.get_profile_by_domain(hostname)
    if profile is not None and profile.is_published:
        return RouteKind.CUSTOM_DOMAIN, profile

    return RouteKind.UNRESOLVED, None


def profile_state_json(profile: Profile) -> str:
    """Serialize a profile for an inline ``<script>`` without breaking out of it."""
    raw = json.dumps(profile.model_dump(mode="json", by_alias=True))
    for char, escaped in _SCRIPT_ESCAPES.items():
        raw = raw.replace(char, escaped)
    return raw


def render_profile_page(profile: Profile, host: str, settings: Settings) -> str:
    """Server-render the HTML shell for a tenant profile.

    Embeds the profile as ``window.__PROFILE_DATA__`` for client hydration,
    plus SEO, Open Graph and Twitter Card tags.
    """
    name = profile.name or profile.slug
    seo_title = profile.seo_title or f"{name} - {settings.site_name}"
    seo_description = (
        profile.seo_description or profile.bio or f"Professional profile for {name}"
    )
    profile_url = f"https://{normalize_host(host)}"

    title_esc = html.escape(seo_title)
    desc_esc = html.escape(seo_description)
    url_esc = html.escape(profile_url)

    image_tags = ""
    if profile.og_image:
        image_esc = html.escape(profile.og_image)
        image_tags = (
            f'  <meta property="og:image" content="{image_esc}">\n'
            f'  <meta name="twitter:image" content="{image_esc}">\n'
        )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title_esc}</title>
  <meta name="description" content="{desc_esc}">

  <!-- Open Graph -->
  <meta property="og:title" content="{title_esc}">
  <meta property="og:description" content="{desc_esc}">
  <meta property="og:url" content="{url_esc}">
  <meta property="og:type" content="profile">
{image_tags}
  <!-- Twitter Card -->
  <meta name="twitter:card" content="summary_large_image">
  <meta name="twitter:title" content="{title_esc}">
  <meta name="twitter:description" content="{desc_esc}">

  <link rel="canonical" href="{url_esc}">
  <script>window.__PROFILE_DATA__ = {profile_state_json(profile)};</script>
  <script type="module" crossorigin src="{CLIENT_BUNDLE_JS}"></script>
  <link rel="stylesheet" href="{CLIENT_BUNDLE_CSS}">
</head>
<body>
  <div id="root"></div>
</body>
</html>
"""


def render_not_found_page(settings: Settings) -> str:
    site = html.escape(settings.site_name)
    main_url = html.escape(f"https://{settings.main_domain}")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Profile Not Found - {site}</title>
  <meta name="robots" content="noindex">
</head>
<body>
  <h1>Profile Not Found</h1>
  <p>The profile you're looking for doesn't exist or has been unpublished.</p>
  <a href="{main_url}">Create your own profile at {site}</a>
</body>
</html>
"""


async def record_view(
    store: ProfileStore,
    profile_id: int,
    ip_address: str,
    user_agent: str,
    referrer: str | None,
) -> None:
    """Record a profile view and bump its counter.

    Runs after the response is sent; failures are logged and never reach
    the visitor.
    """
    try:
        await store.record_profile_view(profile_id, ip_address, user_agent, referrer)
    except Exception:
        logger.exception("Failed to record view for profile %d", profile_id)
    try:
        await store.increment_view_count(profile_id)
    except Exception:
        logger.exception("Failed to increment view count for profile %d", profile_id)
