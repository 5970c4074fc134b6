"""Shared fixtures for namedrop tests."""

from typing import Any

import httpx
import pytest

from namedrop.models.profile import ExternalLink, Profile
from namedrop.services.profile_store import InMemoryProfileStore


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from namedrop.config import get_settings

    get_settings.cache_clear()

    # 2. HTTP client singleton
    import namedrop.services.http_client as http_mod

    http_mod._client = None

    # 3. Blog service singleton (owns the response cache)
    import namedrop.services.blog as blog_mod

    blog_mod._service = None

    # 4. Profile store singleton
    import namedrop.services.profile_store as store_mod

    store_mod._store = None

    # 5. Rate limiter state
    import namedrop.routers.ai as ai_mod
    import namedrop.routers.profiles as profiles_mod

    ai_mod._rate_limits.clear()
    profiles_mod._rate_limits.clear()

    # 6. Health check cache
    import namedrop.main as main_mod

    main_mod._health_cache = None


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide a Settings object with safe test defaults."""
    from namedrop.config import Settings, get_settings

    test_settings = Settings(
        main_domain="example.com",
        site_name="NameDrop.cv",
        wordpress_base_url="https://cms.test/wp-json/wp/v2",
        wordpress_username="api-user",
        wordpress_app_password="app-pass",
        blog_default_author="Wrelik Brands",
        profile_store_backend="memory",
        openai_api_key="test-key",
        openai_model="gpt-4o",
    )

    get_settings.cache_clear()
    monkeypatch.setattr("namedrop.config.get_settings", lambda: test_settings)

    # Patch get_settings in all modules that import it directly
    # (from namedrop.config import get_settings creates a local binding that
    # the namedrop.config monkeypatch above does not affect)
    for mod_path in [
        "namedrop.services.http_client",
        "namedrop.services.blog",
        "namedrop.services.profile_store",
        "namedrop.services.llm",
        "namedrop.middleware",
        "namedrop.routers.blog",
        "namedrop.routers.ai",
        "namedrop.main",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


class FakeWordPress:
    """Programmable stand-in for the WordPress REST API.

    Set ``handler`` to a function of ``httpx.Request`` returning an
    ``httpx.Response`` (or raising an ``httpx`` error).  Every request is
    recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json=[])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> list[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture
def fake_wordpress(monkeypatch) -> FakeWordPress:
    """Route the shared outbound HTTP client to a FakeWordPress."""
    fake = FakeWordPress()
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    monkeypatch.setattr("namedrop.services.http_client._client", client)
    return fake


@pytest.fixture
def wp_post():
    """Factory for WordPress REST API post payloads (``_embed=1`` shape)."""

    def _make(
        id: int = 1,
        slug: str = "hello-world",
        title: str = "Hello <em>World</em>",
        content: str = "<p>Some words here.</p>",
        excerpt: str = "<p>A short excerpt.</p>",
        sticky: bool = False,
        category: str | None = "CV Writing",
        tags: list[str] | None = None,
        author: str | None = "Jane Writer",
        image: str | None = None,
    ) -> dict[str, Any]:
        embedded: dict[str, Any] = {
            "wp:term": [
                [{"name": category, "slug": "cat", "taxonomy": "category"}]
                if category
                else [],
                [
                    {"name": t, "slug": t, "taxonomy": "post_tag"}
                    for t in (tags or [])
                ],
            ]
        }
        if author:
            embedded["author"] = [{"name": author}]
        if image:
            embedded["wp:featuredmedia"] = [{"source_url": image, "alt_text": ""}]
        return {
            "id": id,
            "date": "2025-03-01T10:00:00",
            "modified": "2025-03-02T11:00:00",
            "slug": slug,
            "status": "publish",
            "title": {"rendered": title},
            "content": {"rendered": content, "protected": False},
            "excerpt": {"rendered": excerpt, "protected": False},
            "sticky": sticky,
            "_embedded": embedded,
        }

    return _make


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    """Install an in-memory profile store with a few profiles."""
    import namedrop.services.profile_store as store_mod

    store = InMemoryProfileStore(
        [
            Profile(
                id=1,
                slug="alice",
                name="Alice Moreno",
                bio="Platform engineer.",
                skills=["Python"],
                external_links=[
                    ExternalLink(id="site", label="Website", url="https://alice.dev")
                ],
                is_published=True,
            ),
            Profile(
                id=2,
                slug="bram",
                name="Bram Okafor",
                custom_domain="bramokafor.com",
                custom_domain_verified=True,
                is_published=True,
                seo_title="Bram Okafor | Product Designer",
                seo_description="Designing calm products.",
                og_image="https://cdn.example.com/bram.png",
            ),
            Profile(id=3, slug="draft", name="Draft User", is_published=False),
        ]
    )
    store_mod._store = store
    return store
