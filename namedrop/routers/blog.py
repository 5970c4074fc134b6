"""Blog post endpoints."""

import html
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import HTMLResponse

from namedrop.config import get_settings
from namedrop.models.blog import BlogCategory, BlogPost, RelatedArticle
from namedrop.services.blog import BlogService, get_blog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])


async def _require_post(slug: str, service: BlogService) -> BlogPost:
    post = await service.get_post(slug)
    if post is None:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


@router.get("/posts", response_model=list[BlogPost])
async def list_blog_posts(
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = Query(
        default=None, description="Category slug to filter by"
    ),
    service: BlogService = Depends(get_blog_service),
):
    """Most recent blog posts, optionally filtered by category."""
    return await service.list_posts(limit=limit, category=category)


@router.get("/posts/{slug}", response_model=BlogPost)
async def get_blog_post(
    slug: str = Path(..., pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$", max_length=200),
    service: BlogService = Depends(get_blog_service),
):
    """Get a single blog post by its slug."""
    return await _require_post(slug, service)


@router.get("/posts/{slug}/related", response_model=list[RelatedArticle])
async def get_related_posts(
    slug: str = Path(..., pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$", max_length=200),
    limit: int = Query(default=3, ge=1, le=10),
    service: BlogService = Depends(get_blog_service),
):
    """Posts from the same category, for the "related articles" panel."""
    post = await _require_post(slug, service)
    return await service.related_posts(post, limit=limit)


@router.get("/posts/{slug}/og")
async def get_blog_post_og(
    slug: str = Path(..., pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$", max_length=200),
    service: BlogService = Depends(get_blog_service),
):
    """Serve a minimal HTML page with OpenGraph meta tags for social sharing.

    Social media crawlers don't execute JavaScript, so the SPA can't provide
    per-post OG tags.  Human visitors are redirected to the SPA page.
    """
    post = await _require_post(slug, service)
    settings = get_settings()

    canonical = f"https://{settings.main_domain}/blog/{slug}"
    title_esc = html.escape(post.seo_title or post.title)
    desc_esc = html.escape(post.seo_description or post.excerpt)
    site_esc = html.escape(settings.site_name)
    published = post.published_at.isoformat()

    image_tag = ""
    if post.featured_image:
        image_esc = html.escape(post.featured_image)
        image_tag = f'<meta property="og:image" content="{image_esc}" />\n'

    page = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>{title_esc}</title>
<meta name="description" content="{desc_esc}" />
<meta property="og:type" content="article" />
<meta property="og:title" content="{title_esc}" />
<meta property="og:description" content="{desc_esc}" />
<meta property="og:url" content="{canonical}" />
<meta property="og:site_name" content="{site_esc}" />
<meta property="article:published_time" content="{published}" />
{image_tag}<meta name="twitter:card" content="summary_large_image" />
<meta name="twitter:title" content="{title_esc}" />
<meta name="twitter:description" content="{desc_esc}" />
<link rel="canonical" href="{canonical}" />
<meta http-equiv="refresh" content="0;url={canonical}" />
</head>
<body>
<p>Redirecting to <a href="{canonical}">{title_esc}</a>...</p>
</body>
</html>"""
    return HTMLResponse(content=page)


@router.get("/categories", response_model=list[BlogCategory])
async def list_blog_categories(service: BlogService = Depends(get_blog_service)):
    return await service.list_categories()


@router.get("/featured", response_model=list[BlogPost])
async def list_featured_posts(
    limit: int = Query(default=3, ge=1, le=20),
    service: BlogService = Depends(get_blog_service),
):
    """Sticky/featured posts for the blog landing page."""
    return await service.featured_posts(limit=limit)


@router.get("/search", response_model=list[BlogPost])
async def search_blog_posts(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(default=10, ge=1, le=50),
    service: BlogService = Depends(get_blog_service),
):
    return await service.search_posts(q, limit=limit)
