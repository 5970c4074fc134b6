"""Public profile data models (owned by the profile store, consumed here)."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from namedrop.models.base import CamelModel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ExternalLink(CamelModel):
    """A link-in-bio tile."""

    id: str
    label: str
    url: str
    icon: str | None = None
    click_count: int = 0
    is_active: bool = True


class Profile(CamelModel):
    """A user's public CV profile, routed by ``slug`` or ``custom_domain``."""

    id: int
    slug: str
    name: str | None = None
    tagline: str | None = None
    bio: str | None = None
    skills: list[str] = []
    work_history: list[dict[str, Any]] = []
    projects: list[dict[str, Any]] = []
    social_links: dict[str, str] = {}
    external_links: list[ExternalLink] = []
    resume_url: str | None = None
    custom_domain: str | None = None
    custom_domain_verified: bool = False
    theme: str = "classic"
    is_published: bool = False
    seo_title: str | None = None
    seo_description: str | None = None
    og_image: str | None = None
    view_count: int = 0
    download_count: int = 0
    link_click_count: int = 0


class ProfileView(CamelModel):
    profile_id: int
    ip_address: str
    user_agent: str
    referrer: str | None = None
    created_at: datetime = Field(default_factory=_now)


class LinkClick(CamelModel):
    profile_id: int
    link_id: str
    link_url: str
    ip_address: str
    user_agent: str
    referrer: str | None = None
    created_at: datetime = Field(default_factory=_now)


class LinkClickRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)
