"""Bundled blog content served when WordPress is unreachable or empty.

Shipped with the code so the blog always renders something.  Entries use
the same models as WordPress content, so callers never need to know which
source a post came from.
"""

from collections import Counter
from datetime import datetime, timezone

from namedrop.models.blog import BlogCategory, BlogPost, RelatedArticle
from namedrop.services.blog_normalizer import reading_time, to_related

FALLBACK_AUTHOR = "NameDrop Team"


def _post(
    id: str,
    slug: str,
    title: str,
    excerpt: str,
    content: str,
    category: str,
    tags: list[str],
    published: datetime,
    featured: bool = False,
    featured_image: str | None = None,
) -> BlogPost:
    return BlogPost(
        id=id,
        title=title,
        slug=slug,
        excerpt=excerpt,
        content=content,
        author=FALLBACK_AUTHOR,
        published_at=published,
        updated_at=published,
        tags=tags,
        category=category,
        featured=featured,
        reading_time=reading_time(content),
        featured_image=featured_image,
        seo_title=f"{title} | NameDrop.cv Blog",
        seo_description=excerpt,
    )


FALLBACK_POSTS: list[BlogPost] = [
    _post(
        id="fallback-1",
        slug="build-professional-cv-gets-noticed",
        title="How to Build a Professional CV That Gets Noticed",
        excerpt=(
            "Recruiters spend seconds on a first pass. Structure, clarity and "
            "measurable results decide whether your CV makes the shortlist."
        ),
        content=(
            "<h2>Lead with a clear headline</h2>"
            "<p>Your name and a one-line professional headline should tell a "
            "recruiter who you are and what you do before they scroll. Skip "
            "generic objectives and state the role you are targeting.</p>"
            "<h2>Quantify your impact</h2>"
            "<p>Replace duty lists with outcomes. \"Managed a team\" says little; "
            "\"Led a team of six engineers that cut release time by 40%\" shows "
            "scope and results. Numbers make achievements concrete and easy to "
            "compare.</p>"
            "<h2>Keep the layout scannable</h2>"
            "<p>Use consistent headings, short bullet points and plenty of white "
            "space. Put the most relevant experience first and trim anything "
            "older than ten to fifteen years unless it is directly relevant.</p>"
            "<h2>Tailor every application</h2>"
            "<p>Mirror the language of the job description for skills you "
            "genuinely have. Applicant tracking systems match keywords, and "
            "humans notice when a CV speaks to their exact problem.</p>"
            "<h2>Publish it online</h2>"
            "<p>A live profile with a memorable link lets you share your CV "
            "anywhere: in email signatures, on social profiles and on a QR "
            "code at networking events.</p>"
        ),
        category="CV Writing",
        tags=["cv", "resume", "job search"],
        published=datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc),
        featured=True,
    ),
    _post(
        id="fallback-2",
        slug="link-in-bio-for-professionals",
        title="Why Every Professional Needs a Link-in-Bio Page",
        excerpt=(
            "One link that gathers your CV, portfolio and contact details makes "
            "you easier to find and easier to hire."
        ),
        content=(
            "<p>Social platforms give you a single link. A professional "
            "link-in-bio page turns that link into a hub for your work history, "
            "projects, writing and contact details.</p>"
            "<h2>Own your first impression</h2>"
            "<p>When someone searches your name, a clean profile page that you "
            "control beats a scattered trail of accounts. Keep the headline, "
            "photo and summary consistent with your CV.</p>"
            "<h2>Track what works</h2>"
            "<p>View and click counts show which links people actually open, so "
            "you can put your strongest work first.</p>"
        ),
        category="Personal Branding",
        tags=["personal branding", "link in bio"],
        published=datetime(2025, 1, 28, 9, 0, tzinfo=timezone.utc),
        featured=True,
    ),
    _post(
        id="fallback-3",
        slug="custom-domain-professional-profile",
        title="Using a Custom Domain for Your Professional Profile",
        excerpt=(
            "A personal domain signals credibility. Here is how to point one at "
            "your profile in a few minutes."
        ),
        content=(
            "<p>A custom domain such as yourname.com makes your profile look "
            "established and keeps your link stable even if you change "
            "platforms.</p>"
            "<h2>Set up a CNAME record</h2>"
            "<p>In your DNS provider, add a CNAME record for your domain that "
            "points to the host given in your profile settings. Changes usually "
            "propagate within an hour.</p>"
            "<h2>Verify and publish</h2>"
            "<p>Once the record resolves, verify the domain from your dashboard. "
            "Visitors to your domain will see your published profile.</p>"
        ),
        category="Personal Branding",
        tags=["custom domain", "dns"],
        published=datetime(2025, 2, 10, 9, 0, tzinfo=timezone.utc),
    ),
    _post(
        id="fallback-4",
        slug="ai-cv-optimization-tips",
        title="Getting the Most from AI CV Optimization",
        excerpt=(
            "AI suggestions can sharpen your wording, but your judgment decides "
            "what stays. Use them as a second pair of eyes."
        ),
        content=(
            "<p>AI tools are good at spotting vague phrasing, passive voice and "
            "missing keywords. They are less good at knowing what you actually "
            "achieved.</p>"
            "<h2>Review every suggestion</h2>"
            "<p>Accept rewrites that stay true to your experience and reject "
            "anything that inflates it. Recruiters will ask about every line.</p>"
            "<h2>Re-score after edits</h2>"
            "<p>Run the optimizer again after each round of changes to see "
            "whether your profile score improves.</p>"
        ),
        category="Career Tips",
        tags=["ai", "cv", "optimization"],
        published=datetime(2025, 2, 24, 9, 0, tzinfo=timezone.utc),
        featured=True,
    ),
    _post(
        id="fallback-5",
        slug="prepare-for-interviews-with-your-cv",
        title="Use Your CV to Prepare for Interviews",
        excerpt=(
            "Every bullet on your CV is a question waiting to be asked. Prepare "
            "a short story for each one."
        ),
        content=(
            "<p>Interviewers build their questions from your CV. Treat each "
            "achievement as a prompt and prepare a brief story: the situation, "
            "what you did and the result.</p>"
            "<h2>Practice out loud</h2>"
            "<p>Rehearse your answers until they are concise. Two minutes per "
            "story is plenty.</p>"
        ),
        category="Career Tips",
        tags=["interviews", "job search"],
        published=datetime(2025, 3, 5, 9, 0, tzinfo=timezone.utc),
    ),
]


def _categories() -> list[BlogCategory]:
    counts = Counter(p.category for p in FALLBACK_POSTS)
    return [
        BlogCategory(
            id=f"fallback-cat-{i}",
            name=name,
            slug=name.lower().replace(" ", "-"),
            description=f"Articles about {name.lower()}.",
            post_count=count,
        )
        for i, (name, count) in enumerate(
            sorted(counts.items(), key=lambda kv: kv[0].lower()), start=1
        )
    ]


FALLBACK_CATEGORIES: list[BlogCategory] = _categories()
_CATEGORY_NAMES = {c.slug: c.name for c in FALLBACK_CATEGORIES}


def _newest_first() -> list[BlogPost]:
    return sorted(FALLBACK_POSTS, key=lambda p: p.published_at, reverse=True)


def fallback_posts(limit: int = 10, category: str | None = None) -> list[BlogPost]:
    posts = _newest_first()
    if category:
        name = _CATEGORY_NAMES.get(category)
        posts = [p for p in posts if p.category == name]
    return posts[:limit]


def fallback_post(slug: str) -> BlogPost | None:
    return next((p for p in FALLBACK_POSTS if p.slug == slug), None)


def fallback_categories() -> list[BlogCategory]:
    return list(FALLBACK_CATEGORIES)


def fallback_featured(limit: int = 3) -> list[BlogPost]:
    """Posts explicitly flagged ``featured``, newest first, capped at *limit*."""
    return [p for p in _newest_first() if p.featured][:limit]


def fallback_related(
    post_id: str, category: str, limit: int = 3
) -> list[RelatedArticle]:
    """Other posts in the same category (matched by display name)."""
    return [
        to_related(p)
        for p in _newest_first()
        if p.category == category and p.id != post_id
    ][:limit]


def fallback_search(query: str, limit: int = 10) -> list[BlogPost]:
    q = query.lower().strip()
    if not q:
        return []
    return [
        p
        for p in _newest_first()
        if q in p.title.lower() or q in p.excerpt.lower() or any(q in t for t in p.tags)
    ][:limit]
