"""Shared HTTP client utilities — reusable httpx client and WordPress fetch."""

import asyncio
import logging
from typing import Any

import httpx

from namedrop.config import get_settings
from namedrop.services.cache import ResponseCache

logger = logging.getLogger(__name__)

# Module-level shared client (created lazily, lives for the process lifetime)
_client: httpx.AsyncClient | None = None


class WordPressError(Exception):
    """Base class for failures talking to the WordPress REST API."""


class WordPressHTTPError(WordPressError):
    """WordPress answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"WordPress API error: {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class WordPressRateLimitError(WordPressHTTPError):
    """Still rate limited (429) after every retry was spent."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(429, url)
        self.attempts = attempts


class WordPressContentTypeError(WordPressError):
    """WordPress returned something other than JSON (e.g. an HTML error page)."""


class WordPressTimeoutError(WordPressError):
    """The fetch, including backoff waits, ran past its deadline."""


def get_shared_client() -> httpx.AsyncClient:
    """Return a shared httpx.AsyncClient, creating it on first call."""
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=get_settings().wordpress_request_timeout)
    return _client


def wordpress_auth() -> httpx.BasicAuth | None:
    """Build HTTP Basic auth from the configured WordPress application password.

    Returns None when no username is configured (public WordPress sites).
    """
    settings = get_settings()
    if not settings.wordpress_username:
        return None
    return httpx.BasicAuth(settings.wordpress_username, settings.wordpress_app_password)


async def _get_with_backoff(
    url: str,
    auth: httpx.BasicAuth | None,
    max_retries: int,
    backoff_base: float,
) -> Any:
    """GET *url*, retrying on 429 with exponential backoff, and parse the JSON body."""
    client = get_shared_client()
    for attempt in range(max_retries):
        try:
            resp = await client.get(
                url, auth=auth, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as exc:
            raise WordPressError(f"Request to {url} failed: {exc}") from exc

        if resp.status_code == 429:
            delay = backoff_base * (2**attempt)
            logger.warning(
                "WordPress rate limited %s, attempt %d/%d, waiting %.1fs",
                url,
                attempt + 1,
                max_retries,
                delay,
            )
            await asyncio.sleep(delay)
            continue

        if not resp.is_success:
            raise WordPressHTTPError(resp.status_code, url)

        content_type = resp.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise WordPressContentTypeError(
                f"WordPress API returned non-JSON response ({content_type or 'none'}) for {url}"
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise WordPressContentTypeError(f"Invalid JSON body from {url}") from exc

    raise WordPressRateLimitError(url, max_retries)


async def fetch_json(
    url: str,
    *,
    cache: ResponseCache | None = None,
    max_retries: int | None = None,
    backoff_base: float | None = None,
    deadline: float | None = None,
) -> Any:
    """Fetch a WordPress REST URL and return its parsed JSON.

    The exact URL (query string included) is the cache key; a fresh cache
    hit returns without touching the network.  Successful responses are
    written to the cache before being returned.

    Args:
        url: Fully-qualified request URL.
        cache: Response cache to consult and populate.
        max_retries: Attempts allowed while the server keeps answering 429.
        backoff_base: First backoff wait in seconds, doubled per retry.
        deadline: Upper bound in seconds for the whole call, waits included.

    Raises:
        WordPressRateLimitError: Every attempt was rate limited.
        WordPressHTTPError: Any other non-2xx status.
        WordPressContentTypeError: Body was not JSON.
        WordPressTimeoutError: The deadline expired.
        WordPressError: Network failure.
    """
    if cache is not None:
        cached = cache.get(url)
        if cached is not None:
            return cached

    settings = get_settings()
    if max_retries is None:
        max_retries = settings.wordpress_max_retries
    if backoff_base is None:
        backoff_base = settings.wordpress_backoff_base
    if deadline is None:
        deadline = settings.wordpress_deadline

    try:
        data = await asyncio.wait_for(
            _get_with_backoff(url, wordpress_auth(), max_retries, backoff_base),
            timeout=deadline,
        )
    except asyncio.TimeoutError as exc:
        raise WordPressTimeoutError(
            f"WordPress fetch exceeded {deadline:.1f}s deadline for {url}"
        ) from exc

    if cache is not None:
        cache.put(url, data)
    return data
