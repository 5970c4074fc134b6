"""Blog content gateway — WordPress first, bundled content as fallback.

WordPress failures of any kind (rate limiting, outages, HTML error pages,
unexpected payloads) are logged and treated as "no data".  Bundled content
is used only when the primary source has nothing to offer, so the blog
always renders something and only a genuinely unknown slug is a 404.
"""

import logging

from namedrop.config import get_settings
from namedrop.models.blog import BlogCategory, BlogPost, RelatedArticle
from namedrop.services import blog_fallback
from namedrop.services.blog_normalizer import to_related
from namedrop.services.cache import TTLCache
from namedrop.services.http_client import (
    WordPressError,
    WordPressRateLimitError,
    WordPressTimeoutError,
)
from namedrop.services.wordpress import WordPressClient

logger = logging.getLogger(__name__)

RELATED_CANDIDATES = 10


def _dedupe(posts: list[BlogPost]) -> list[BlogPost]:
    """Drop later posts whose id was already seen, preserving order."""
    seen: set[str] = set()
    unique: list[BlogPost] = []
    for post in posts:
        if post.id in seen:
            continue
        seen.add(post.id)
        unique.append(post)
    return unique


class BlogService:
    """Source-agnostic access to blog posts and categories."""

    def __init__(self, client: WordPressClient) -> None:
        self.client = client

    async def list_posts(
        self, limit: int = 10, category: str | None = None
    ) -> list[BlogPost]:
        try:
            posts = await self.client.get_posts(limit, category)
        except WordPressError as e:
            logger.warning("WordPress posts unavailable: %s", e)
            posts = []
        if posts:
            return posts[:limit]
        return blog_fallback.fallback_posts(limit, category)

    async def get_post(self, slug: str) -> BlogPost | None:
        try:
            post = await self.client.get_post(slug)
        except WordPressError as e:
            logger.warning("WordPress post %r unavailable: %s", slug, e)
            post = None
        if post is not None:
            return post
        return blog_fallback.fallback_post(slug)

    async def list_categories(self) -> list[BlogCategory]:
        try:
            categories = await self.client.get_categories()
        except WordPressError as e:
            logger.warning("WordPress categories unavailable: %s", e)
            categories = []
        return categories or blog_fallback.fallback_categories()

    async def featured_posts(self, limit: int = 3) -> list[BlogPost]:
        """Sticky posts, topped up with recent posts when there are too few.

        A rate-limited or timed-out sticky fetch skips the top-up and goes
        straight to bundled content.
        """
        throttled = False
        try:
            sticky = await self.client.get_sticky_posts(limit)
        except (WordPressRateLimitError, WordPressTimeoutError) as e:
            logger.warning("WordPress sticky posts unavailable: %s", e)
            sticky = []
            throttled = True
        except WordPressError as e:
            logger.warning("WordPress sticky posts unavailable: %s", e)
            sticky = []

        posts = sticky
        if len(sticky) < limit and not throttled:
            try:
                recent = await self.client.get_posts(limit)
            except WordPressError as e:
                logger.warning("WordPress recent posts unavailable: %s", e)
                recent = []
            posts = _dedupe(sticky + recent)

        if posts:
            return posts[:limit]
        return blog_fallback.fallback_featured(limit)

    async def related_posts(self, post: BlogPost, limit: int = 3) -> list[RelatedArticle]:
        """Other posts from *post*'s category, excluding *post* itself."""
        candidates: list[BlogPost] = []
        try:
            categories = await self.client.get_categories()
            match = next((c for c in categories if c.name == post.category), None)
            if match is not None:
                candidates = await self.client.get_posts(RELATED_CANDIDATES, match.slug)
        except WordPressError as e:
            logger.warning("WordPress related posts unavailable: %s", e)

        related = [to_related(p) for p in candidates if p.id != post.id][:limit]
        if related:
            return related
        return blog_fallback.fallback_related(post.id, post.category, limit)

    async def search_posts(self, query: str, limit: int = 10) -> list[BlogPost]:
        try:
            posts = await self.client.search_posts(query, limit)
        except WordPressError as e:
            logger.warning("WordPress search unavailable: %s", e)
            posts = []
        if posts:
            return posts[:limit]
        return blog_fallback.fallback_search(query, limit)


# Lazy singleton: one response cache for the process lifetime
_service: BlogService | None = None


def get_blog_service() -> BlogService:
    """Return the process-wide BlogService, creating it on first call."""
    global _service
    if _service is None:
        settings = get_settings()
        client = WordPressClient(
            settings.wordpress_base_url,
            cache=TTLCache(ttl=settings.content_cache_ttl),
            default_author=settings.blog_default_author,
        )
        _service = BlogService(client)
    return _service
