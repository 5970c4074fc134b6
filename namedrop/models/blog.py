"""Blog content data models.

Serialized in camelCase to match the shape the web client consumes.
"""

from datetime import datetime

from pydantic import Field

from namedrop.models.base import CamelModel


class BlogPost(CamelModel):
    """A blog post, read-only from the gateway's point of view."""

    id: str
    title: str
    slug: str = Field(..., min_length=1, max_length=200)
    excerpt: str = ""
    content: str = ""  # HTML, kept as-is for rendering
    author: str
    published_at: datetime
    updated_at: datetime
    tags: list[str] = []
    category: str = "Uncategorized"
    featured: bool = False
    reading_time: int = Field(default=1, ge=1)
    featured_image: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None


class BlogCategory(CamelModel):
    """A blog category with its post count."""

    id: str
    name: str
    slug: str
    description: str = ""
    post_count: int = 0


class RelatedArticle(CamelModel):
    """Subset of a post shown in "related content" panels."""

    id: str
    title: str
    slug: str
    excerpt: str
    published_at: datetime
    reading_time: int
    category: str
