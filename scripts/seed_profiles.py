"""Seed demo profiles to the Azure Blob Storage profile store.

Usage:
    python -m scripts.seed_profiles
"""

import logging

from azure.identity import DefaultAzureCredential
from azure.storage.blob import ContainerClient

from namedrop.config import get_settings
from namedrop.models.profile import ExternalLink, Profile
from namedrop.services.profile_store import BlobProfileStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("seed_profiles")

SEED_PROFILES = [
    Profile(
        id=1,
        slug="alice",
        name="Alice Moreno",
        tagline="Staff engineer building developer platforms",
        bio=(
            "Ten years shipping infrastructure and developer tooling. I lead "
            "platform teams that make other engineers faster."
        ),
        skills=["Python", "Kubernetes", "Platform Engineering", "Go"],
        work_history=[
            {
                "company": "Brightpath",
                "position": "Staff Engineer",
                "startDate": "2021-03",
                "description": "Led the internal developer platform.",
                "current": True,
            }
        ],
        social_links={"github": "https://github.com/alice-demo"},
        external_links=[
            ExternalLink(id="portfolio", label="Portfolio", url="https://alice.dev"),
            ExternalLink(id="talks", label="Conference talks", url="https://alice.dev/talks"),
        ],
        is_published=True,
    ),
    Profile(
        id=2,
        slug="bram",
        name="Bram Okafor",
        tagline="Product designer",
        bio="Designing calm, accessible products for healthcare teams.",
        skills=["Figma", "Design Systems", "User Research"],
        custom_domain="bramokafor.com",
        custom_domain_verified=True,
        is_published=True,
        seo_title="Bram Okafor | Product Designer",
    ),
    Profile(
        id=3,
        slug="draft-user",
        name="Draft User",
        bio="Not published yet.",
    ),
]


def main() -> None:
    settings = get_settings()
    account_url = f"https://{settings.azure_storage_account}.blob.core.windows.net"
    container = ContainerClient(
        account_url=account_url,
        container_name=settings.azure_profile_container,
        credential=DefaultAzureCredential(),
    )
    store = BlobProfileStore(container)

    logger.info(
        "Seeding %d profiles to %s/%s",
        len(SEED_PROFILES),
        settings.azure_storage_account,
        settings.azure_profile_container,
    )
    for profile in SEED_PROFILES:
        store.save_profile(profile)
        logger.info("  Uploaded: %s (published=%s)", profile.slug, profile.is_published)

    container.close()
    logger.info("Done!")


if __name__ == "__main__":
    main()
