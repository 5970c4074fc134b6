"""Profile store — lookups and engagement counters for public profiles.

Two backends implement ``ProfileStore``:

- ``InMemoryProfileStore`` for local development and tests.
- ``BlobProfileStore`` for Azure Blob Storage.  Layout inside the container::

      profiles/{id}.json          profile document (camelCase JSON)
      slugs/{slug}.json           {"profileId": id}
      domains/{host}.json         {"profileId": id}
      views/{id}/{ts}-{uuid}.json one blob per recorded view
      clicks/{id}/{ts}-{uuid}.json one blob per recorded link click

  Counter updates use ETag-conditional writes, retried on conflict, so
  concurrent increments are never lost.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Protocol

from azure.core import MatchConditions
from azure.core.exceptions import (
    HttpResponseError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.identity import ManagedIdentityCredential
from azure.storage.blob import ContainerClient, ContentSettings

from namedrop.config import get_settings
from namedrop.models.profile import LinkClick, Profile, ProfileView

logger = logging.getLogger(__name__)

JSON_CONTENT = ContentSettings(content_type="application/json")
MAX_COUNTER_RETRIES = 5

_SAFE_PATH_SEGMENT_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._-]*$")


def validate_blob_path_segment(segment: str) -> str:
    """Validate a user-supplied blob path segment.

    Rejects inputs containing path traversal sequences (..), slashes,
    backslashes, or other unsafe characters. Returns the segment unchanged
    if valid; raises ValueError otherwise.
    """
    if not segment or ".." in segment or not _SAFE_PATH_SEGMENT_RE.match(segment):
        raise ValueError(f"Invalid blob path segment: {segment!r}")
    return segment


def normalize_host(host: str) -> str:
    """Lowercase a Host header value and drop any port."""
    host = host.strip().lower()
    if host.startswith("["):
        # IPv6 literal, e.g. "[::1]:8000"
        return host[1:].split("]", 1)[0]
    return host.split(":", 1)[0].rstrip(".")


class ProfileStore(Protocol):
    async def get_profile_by_slug(self, slug: str) -> Profile | None: ...

    async def get_profile_by_domain(self, host: str) -> Profile | None: ...

    async def increment_view_count(self, profile_id: int) -> None: ...

    async def record_profile_view(
        self,
        profile_id: int,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> ProfileView: ...

    async def record_link_click(
        self,
        profile_id: int,
        link_id: str,
        link_url: str,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> LinkClick: ...


class InMemoryProfileStore:
    """Process-local profile store."""

    def __init__(self, profiles: list[Profile] | None = None) -> None:
        self._profiles: dict[int, Profile] = {}
        self.views: list[ProfileView] = []
        self.clicks: list[LinkClick] = []
        for profile in profiles or []:
            self.add_profile(profile)

    def add_profile(self, profile: Profile) -> None:
        self._profiles[profile.id] = profile

    def get_profile(self, profile_id: int) -> Profile | None:
        return self._profiles.get(profile_id)

    async def get_profile_by_slug(self, slug: str) -> Profile | None:
        return next((p for p in self._profiles.values() if p.slug == slug), None)

    async def get_profile_by_domain(self, host: str) -> Profile | None:
        host = normalize_host(host)
        return next(
            (
                p
                for p in self._profiles.values()
                if p.custom_domain
                and p.custom_domain_verified
                and normalize_host(p.custom_domain) == host
            ),
            None,
        )

    async def increment_view_count(self, profile_id: int) -> None:
        profile = self._profiles.get(profile_id)
        if profile is not None:
            profile.view_count += 1

    async def record_profile_view(
        self,
        profile_id: int,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> ProfileView:
        view = ProfileView(
            profile_id=profile_id,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
        )
        self.views.append(view)
        return view

    async def record_link_click(
        self,
        profile_id: int,
        link_id: str,
        link_url: str,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> LinkClick:
        click = LinkClick(
            profile_id=profile_id,
            link_id=link_id,
            link_url=link_url,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
        )
        self.clicks.append(click)
        profile = self._profiles.get(profile_id)
        if profile is not None:
            profile.link_click_count += 1
            for link in profile.external_links:
                if link.id == link_id:
                    link.click_count += 1
        return click


def _get_credential() -> ManagedIdentityCredential:
    """Return Managed Identity credential."""
    settings = get_settings()
    return ManagedIdentityCredential(client_id=settings.managed_identity_client_id)


def create_container_client(container_name: str) -> ContainerClient:
    """Create a ContainerClient for the given container."""
    settings = get_settings()
    account_url = f"https://{settings.azure_storage_account}.blob.core.windows.net"
    return ContainerClient(
        account_url=account_url,
        container_name=container_name,
        credential=_get_credential(),
    )


def _event_blob_name(prefix: str, profile_id: int) -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
    return f"{prefix}/{profile_id}/{ts}-{uuid.uuid4().hex}.json"


class BlobProfileStore:
    """Profile store backed by an Azure Blob Storage container."""

    def __init__(self, container: ContainerClient) -> None:
        self._container = container

    def _read_json(self, name: str) -> dict | None:
        try:
            data = self._container.get_blob_client(name).download_blob().readall()
        except ResourceNotFoundError:
            return None
        return json.loads(data)

    def _load_profile(self, profile_id: int) -> Profile | None:
        data = self._read_json(f"profiles/{profile_id}.json")
        return Profile.model_validate(data) if data is not None else None

    def _resolve_pointer(self, name: str) -> Profile | None:
        try:
            pointer = self._read_json(name)
            if pointer is None:
                return None
            return self._load_profile(int(pointer["profileId"]))
        except HttpResponseError as e:
            logger.warning("Azure API error reading %s: %s", name, e.message)
            return None

    async def get_profile_by_slug(self, slug: str) -> Profile | None:
        try:
            validate_blob_path_segment(slug)
        except ValueError:
            return None
        return self._resolve_pointer(f"slugs/{slug}.json")

    async def get_profile_by_domain(self, host: str) -> Profile | None:
        host = normalize_host(host)
        try:
            validate_blob_path_segment(host)
        except ValueError:
            return None
        profile = self._resolve_pointer(f"domains/{host}.json")
        if profile is None or not profile.custom_domain_verified:
            return None
        return profile

    def save_profile(self, profile: Profile) -> None:
        """Write a profile and its slug/domain pointers."""
        validate_blob_path_segment(profile.slug)
        pointer = json.dumps({"profileId": profile.id})
        self._container.get_blob_client(f"profiles/{profile.id}.json").upload_blob(
            profile.model_dump_json(by_alias=True, indent=2),
            overwrite=True,
            content_settings=JSON_CONTENT,
        )
        self._container.get_blob_client(f"slugs/{profile.slug}.json").upload_blob(
            pointer, overwrite=True, content_settings=JSON_CONTENT
        )
        if profile.custom_domain:
            host = validate_blob_path_segment(normalize_host(profile.custom_domain))
            self._container.get_blob_client(f"domains/{host}.json").upload_blob(
                pointer, overwrite=True, content_settings=JSON_CONTENT
            )

    def _update_counters(self, profile_id: int, link_id: str | None = None) -> None:
        """Bump view or link-click counters with optimistic concurrency."""
        blob = self._container.get_blob_client(f"profiles/{profile_id}.json")
        for attempt in range(MAX_COUNTER_RETRIES):
            try:
                downloader = blob.download_blob()
            except ResourceNotFoundError:
                logger.warning("Profile %d missing, counter not updated", profile_id)
                return
            etag = downloader.properties.etag
            profile = Profile.model_validate(json.loads(downloader.readall()))

            if link_id is None:
                profile.view_count += 1
            else:
                profile.link_click_count += 1
                for link in profile.external_links:
                    if link.id == link_id:
                        link.click_count += 1

            try:
                blob.upload_blob(
                    profile.model_dump_json(by_alias=True, indent=2),
                    overwrite=True,
                    content_settings=JSON_CONTENT,
                    etag=etag,
                    match_condition=MatchConditions.IfNotModified,
                )
                return
            except ResourceModifiedError:
                logger.info(
                    "Counter conflict on profile %d, retry %d/%d",
                    profile_id,
                    attempt + 1,
                    MAX_COUNTER_RETRIES,
                )
        raise RuntimeError(
            f"Could not update counters for profile {profile_id} after "
            f"{MAX_COUNTER_RETRIES} attempts"
        )

    async def increment_view_count(self, profile_id: int) -> None:
        self._update_counters(profile_id)

    async def record_profile_view(
        self,
        profile_id: int,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> ProfileView:
        view = ProfileView(
            profile_id=profile_id,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
        )
        self._container.get_blob_client(
            _event_blob_name("views", profile_id)
        ).upload_blob(
            view.model_dump_json(by_alias=True),
            overwrite=True,
            content_settings=JSON_CONTENT,
        )
        return view

    async def record_link_click(
        self,
        profile_id: int,
        link_id: str,
        link_url: str,
        ip_address: str,
        user_agent: str,
        referrer: str | None = None,
    ) -> LinkClick:
        click = LinkClick(
            profile_id=profile_id,
            link_id=link_id,
            link_url=link_url,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
        )
        self._container.get_blob_client(
            _event_blob_name("clicks", profile_id)
        ).upload_blob(
            click.model_dump_json(by_alias=True),
            overwrite=True,
            content_settings=JSON_CONTENT,
        )
        self._update_counters(profile_id, link_id=link_id)
        return click


def check_storage_connectivity(store: ProfileStore) -> bool:
    """Lightweight storage connectivity check — lists 1 blob for the blob backend."""
    if not isinstance(store, BlobProfileStore):
        return True
    try:
        next(store._container.list_blobs(results_per_page=1).__iter__())
        return True
    except StopIteration:
        # Empty container still means connected
        return True
    except Exception:
        return False


# Lazy singleton, lives for the process lifetime
_store: ProfileStore | None = None


def get_profile_store() -> ProfileStore:
    """Return the configured profile store (lazy singleton)."""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.profile_store_backend == "blob":
            _store = BlobProfileStore(
                create_container_client(settings.azure_profile_container)
            )
        else:
            _store = InMemoryProfileStore()
    return _store
