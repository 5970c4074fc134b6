"""WordPress REST API client for blog posts and categories.

Every call goes through ``fetch_json`` so responses are cached per URL and
rate limiting is retried with backoff.  Errors propagate as
``WordPressError`` subclasses; the blog service decides how to degrade.
"""

import logging
from urllib.parse import urlencode

from namedrop.models.blog import BlogCategory, BlogPost
from namedrop.services.blog_normalizer import normalize_categories, normalize_posts
from namedrop.services.cache import ResponseCache
from namedrop.services.http_client import fetch_json

logger = logging.getLogger(__name__)


class WordPressClient:
    """Read-only client for ``{base_url}/posts`` and ``{base_url}/categories``."""

    def __init__(
        self,
        base_url: str,
        cache: ResponseCache,
        default_author: str = "Wrelik Brands",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.default_author = default_author

    def _url(self, path: str, params: dict[str, str | int]) -> str:
        # Parameter order is fixed by the caller so the URL is a stable cache key
        return f"{self.base_url}/{path}?{urlencode(params)}"

    async def _get_posts(self, params: dict[str, str | int]) -> list[BlogPost]:
        payload = await fetch_json(self._url("posts", params), cache=self.cache)
        return normalize_posts(payload, self.default_author)

    async def get_posts(
        self, limit: int = 10, category: str | None = None
    ) -> list[BlogPost]:
        """Most recent posts, optionally restricted to a category slug.

        An unknown category slug yields an empty list.
        """
        params: dict[str, str | int] = {"per_page": limit, "_embed": 1}
        if category:
            categories = await self.get_categories()
            match = next((c for c in categories if c.slug == category), None)
            if match is None:
                logger.info("Unknown blog category %r", category)
                return []
            params["categories"] = match.id
        return await self._get_posts(params)

    async def get_post(self, slug: str) -> BlogPost | None:
        posts = await self._get_posts({"slug": slug, "_embed": 1})
        return posts[0] if posts else None

    async def get_categories(self) -> list[BlogCategory]:
        payload = await fetch_json(
            self._url("categories", {"per_page": 100}), cache=self.cache
        )
        return normalize_categories(payload)

    async def get_sticky_posts(self, limit: int = 3) -> list[BlogPost]:
        return await self._get_posts({"per_page": limit, "sticky": "true", "_embed": 1})

    async def search_posts(self, query: str, limit: int = 10) -> list[BlogPost]:
        return await self._get_posts({"search": query, "per_page": limit, "_embed": 1})
