"""Map WordPress REST API posts/categories onto the internal blog models.

WordPress embeds related records under ``_embedded`` when a request carries
``_embed=1``: the author list, the featured media list, and ``wp:term``, a
list of taxonomy groups (categories first, then tags).  Each term carries its
``taxonomy`` name, which is matched first; the positional convention is only
used for payloads whose terms don't say which taxonomy they belong to.
"""

import html
import logging
import math
import re
from typing import Any

from namedrop.models.blog import BlogCategory, BlogPost, RelatedArticle

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
DEFAULT_CATEGORY = "Uncategorized"

_TAG_RE = re.compile(r"<[^>]*>")

# taxonomy name -> position in _embedded["wp:term"] when names are missing
_TAXONOMY_POSITIONS = {"category": 0, "post_tag": 1}


def strip_html(text: str | None) -> str:
    """Remove HTML tags and decode entities (``&#8217;`` -> ``'``)."""
    if not text:
        return ""
    return html.unescape(_TAG_RE.sub("", text)).strip()


def word_count(content_html: str | None) -> int:
    return len(strip_html(content_html).split())


def reading_time(content_html: str | None) -> int:
    """Minutes to read at 200 words per minute, never less than 1."""
    return max(1, math.ceil(word_count(content_html) / WORDS_PER_MINUTE))


def _rendered(field: Any) -> str:
    """WordPress wraps text fields as ``{"rendered": ...}``; accept bare strings too."""
    if isinstance(field, dict):
        return field.get("rendered") or ""
    return field or ""


def _term_group(groups: list[Any], taxonomy: str) -> list[dict[str, Any]]:
    """Pick the embedded term group for *taxonomy*."""
    named = False
    for group in groups:
        if not isinstance(group, list) or not group:
            continue
        first = group[0]
        if isinstance(first, dict) and first.get("taxonomy"):
            named = True
            if first["taxonomy"] == taxonomy:
                return group
    if named:
        return []
    pos = _TAXONOMY_POSITIONS[taxonomy]
    if len(groups) > pos and isinstance(groups[pos], list):
        return groups[pos]
    return []


def normalize_post(raw: dict[str, Any], default_author: str) -> BlogPost:
    """Transform one WordPress post into a ``BlogPost``.

    Raises KeyError/TypeError/ValueError when the record is missing
    required fields.
    """
    embedded = raw.get("_embedded") or {}

    authors = embedded.get("author") or []
    author = (authors[0].get("name") if authors else None) or default_author

    media = embedded.get("wp:featuredmedia") or []
    featured_image = media[0].get("source_url") if media else None

    term_groups = embedded.get("wp:term") or []
    categories = _term_group(term_groups, "category")
    tags = _term_group(term_groups, "post_tag")

    content = _rendered(raw.get("content"))
    seo = raw.get("yoast_head_json") or {}

    return BlogPost(
        id=str(raw["id"]),
        title=strip_html(_rendered(raw["title"])),
        slug=raw["slug"],
        excerpt=strip_html(_rendered(raw.get("excerpt"))),
        content=content,
        author=author,
        published_at=raw["date"],
        updated_at=raw.get("modified") or raw["date"],
        tags=[t["name"] for t in tags if t.get("name")],
        category=(categories[0].get("name") if categories else None)
        or DEFAULT_CATEGORY,
        featured=bool(raw.get("sticky")),
        reading_time=reading_time(content),
        featured_image=featured_image,
        seo_title=seo.get("title"),
        seo_description=seo.get("description"),
    )


def normalize_posts(payload: Any, default_author: str) -> list[BlogPost]:
    """Normalize a list payload, skipping records that don't fit the schema.

    A non-list payload (unexpected shape) yields an empty list.
    """
    if not isinstance(payload, list):
        logger.warning(
            "Expected a list of posts from WordPress, got %s", type(payload).__name__
        )
        return []
    posts: list[BlogPost] = []
    for raw in payload:
        try:
            posts.append(normalize_post(raw, default_author))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(
                "Skipping malformed WordPress post %r: %s",
                raw.get("id") if isinstance(raw, dict) else raw,
                e,
            )
    return posts


def normalize_category(raw: dict[str, Any]) -> BlogCategory:
    return BlogCategory(
        id=str(raw["id"]),
        name=strip_html(raw["name"]),
        slug=raw["slug"],
        description=strip_html(raw.get("description")),
        post_count=raw.get("count") or 0,
    )


def normalize_categories(payload: Any) -> list[BlogCategory]:
    if not isinstance(payload, list):
        logger.warning(
            "Expected a list of categories from WordPress, got %s",
            type(payload).__name__,
        )
        return []
    categories: list[BlogCategory] = []
    for raw in payload:
        try:
            categories.append(normalize_category(raw))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed WordPress category: %s", e)
    return categories


def to_related(post: BlogPost) -> RelatedArticle:
    return RelatedArticle(
        id=post.id,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        published_at=post.published_at,
        reading_time=post.reading_time,
        category=post.category,
    )
