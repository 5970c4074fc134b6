"""Tests for profile_store — host normalization, in-memory and blob backends."""

import json
from unittest.mock import MagicMock

import pytest
from azure.core import MatchConditions
from azure.core.exceptions import (
    HttpResponseError,
    ResourceModifiedError,
    ResourceNotFoundError,
)

from namedrop.models.profile import ExternalLink, Profile
from namedrop.services.profile_store import (
    MAX_COUNTER_RETRIES,
    BlobProfileStore,
    InMemoryProfileStore,
    check_storage_connectivity,
    get_profile_store,
    normalize_host,
    validate_blob_path_segment,
)


def _profile_json(**overrides):
    profile = Profile(
        id=1,
        slug="alice",
        name="Alice",
        is_published=True,
        external_links=[ExternalLink(id="site", label="Site", url="https://a.dev")],
    )
    return profile.model_copy(update=overrides).model_dump_json(by_alias=True).encode()


def _mock_blob_download(data: bytes, etag: str = '"0x1"'):
    """Create a mock blob client whose download_blob() returns *data*."""
    mock_blob = MagicMock()
    mock_blob.download_blob.return_value.readall.return_value = data
    mock_blob.download_blob.return_value.properties.etag = etag
    return mock_blob


class TestNormalizeHost:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Alice.Example.com", "alice.example.com"),
            ("alice.example.com:8080", "alice.example.com"),
            ("example.com.", "example.com"),
            ("[::1]:8000", "::1"),
            ("  HOST  ", "host"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_host(raw) == expected


class TestValidateBlobPathSegment:
    @pytest.mark.parametrize("segment", ["alice", "bramokafor.com", "a_b-c"])
    def test_valid(self, segment):
        assert validate_blob_path_segment(segment) == segment

    @pytest.mark.parametrize("segment", ["", "../etc", "a/b", "a\\b", ".hidden"])
    def test_invalid(self, segment):
        with pytest.raises(ValueError):
            validate_blob_path_segment(segment)


class TestInMemoryProfileStore:
    @pytest.mark.asyncio
    async def test_lookup_by_slug(self, profile_store):
        profile = await profile_store.get_profile_by_slug("alice")
        assert profile.id == 1
        assert await profile_store.get_profile_by_slug("nobody") is None

    @pytest.mark.asyncio
    async def test_domain_lookup_ignores_case_and_port(self, profile_store):
        profile = await profile_store.get_profile_by_domain("BRAMOKAFOR.com:443")
        assert profile.slug == "bram"

    @pytest.mark.asyncio
    async def test_click_updates_counters(self, profile_store):
        await profile_store.record_link_click(1, "site", "https://alice.dev", "ip", "ua")
        await profile_store.record_link_click(1, "other", "https://x.dev", "ip", "ua")
        profile = profile_store.get_profile(1)
        assert profile.link_click_count == 2
        assert profile.external_links[0].click_count == 1

    @pytest.mark.asyncio
    async def test_increment_unknown_profile_is_noop(self, profile_store):
        await profile_store.increment_view_count(999)


class TestBlobProfileStore:
    @pytest.mark.asyncio
    async def test_slug_lookup_follows_pointer(self):
        """slugs/{slug}.json points at profiles/{id}.json."""
        blobs = {
            "slugs/alice.json": _mock_blob_download(json.dumps({"profileId": 1}).encode()),
            "profiles/1.json": _mock_blob_download(_profile_json()),
        }
        mock_container = MagicMock()
        mock_container.get_blob_client.side_effect = lambda name: blobs[name]

        profile = await BlobProfileStore(mock_container).get_profile_by_slug("alice")

        assert profile.name == "Alice"
        assert profile.external_links[0].id == "site"

    @pytest.mark.asyncio
    async def test_missing_slug_returns_none(self):
        mock_blob = MagicMock()
        mock_blob.download_blob.side_effect = ResourceNotFoundError("nope")
        mock_container = MagicMock()
        mock_container.get_blob_client.return_value = mock_blob

        assert await BlobProfileStore(mock_container).get_profile_by_slug("ghost") is None

    @pytest.mark.asyncio
    async def test_azure_error_returns_none(self):
        mock_blob = MagicMock()
        mock_blob.download_blob.side_effect = HttpResponseError(message="boom")
        mock_container = MagicMock()
        mock_container.get_blob_client.return_value = mock_blob

        assert await BlobProfileStore(mock_container).get_profile_by_slug("alice") is None

    @pytest.mark.asyncio
    async def test_unsafe_slug_never_reaches_storage(self):
        mock_container = MagicMock()
        store = BlobProfileStore(mock_container)

        assert await store.get_profile_by_slug("../profiles/1") is None
        mock_container.get_blob_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_unverified_domain_returns_none(self):
        blobs = {
            "domains/alice.dev.json": _mock_blob_download(
                json.dumps({"profileId": 1}).encode()
            ),
            "profiles/1.json": _mock_blob_download(
                _profile_json(custom_domain="alice.dev", custom_domain_verified=False)
            ),
        }
        mock_container = MagicMock()
        mock_container.get_blob_client.side_effect = lambda name: blobs[name]

        assert await BlobProfileStore(mock_container).get_profile_by_domain("alice.dev") is None

    @pytest.mark.asyncio
    async def test_increment_uses_etag_condition(self):
        mock_blob = _mock_blob_download(_profile_json(view_count=4), etag='"0xABC"')
        mock_container = MagicMock()
        mock_container.get_blob_client.return_value = mock_blob

        await BlobProfileStore(mock_container).increment_view_count(1)

        args, kwargs = mock_blob.upload_blob.call_args
        assert json.loads(args[0])["viewCount"] == 5
        assert kwargs["etag"] == '"0xABC"'
        assert kwargs["match_condition"] == MatchConditions.IfNotModified

    @pytest.mark.asyncio
    async def test_increment_retries_on_conflict(self):
        """A concurrent write forces a re-read, and no increment is lost."""
        mock_blob = _mock_blob_download(_profile_json(view_count=4))
        mock_blob.upload_blob.side_effect = [ResourceModifiedError("conflict"), None]
        mock_container = MagicMock()
        mock_container.get_blob_client.return_value = mock_blob

        await BlobProfileStore(mock_container).increment_view_count(1)

        assert mock_blob.download_blob.call_count == 2
        assert mock_blob.upload_blob.call_count == 2

    @pytest.mark.asyncio
    async def test_increment_gives_up_after_max_retries(self):
        mock_blob = _mock_blob_download(_profile_json())
        mock_blob.upload_blob.side_effect = ResourceModifiedError("conflict")
        mock_container = MagicMock()
        mock_container.get_blob_client.return_value = mock_blob

        with pytest.raises(RuntimeError):
            await BlobProfileStore(mock_container).increment_view_count(1)
        assert mock_blob.upload_blob.call_count == MAX_COUNTER_RETRIES

    @pytest.mark.asyncio
    async def test_link_click_writes_event_and_counters(self):
        profile_blob = _mock_blob_download(_profile_json())
        event_blob = MagicMock()
        mock_container = MagicMock()
        mock_container.get_blob_client.side_effect = (
            lambda name: profile_blob if name == "profiles/1.json" else event_blob
        )

        await BlobProfileStore(mock_container).record_link_click(
            1, "site", "https://a.dev", "10.0.0.1", "ua"
        )

        event = json.loads(event_blob.upload_blob.call_args.args[0])
        assert event["linkId"] == "site"
        assert event["profileId"] == 1
        saved = json.loads(profile_blob.upload_blob.call_args.args[0])
        assert saved["linkClickCount"] == 1
        assert saved["externalLinks"][0]["clickCount"] == 1

    def test_save_profile_writes_pointers(self):
        mock_container = MagicMock()
        store = BlobProfileStore(mock_container)

        store.save_profile(
            Profile(id=2, slug="bram", custom_domain="BramOkafor.com", is_published=True)
        )

        names = [c.args[0] for c in mock_container.get_blob_client.call_args_list]
        assert names == [
            "profiles/2.json",
            "slugs/bram.json",
            "domains/bramokafor.com.json",
        ]


class TestConnectivity:
    def test_memory_store_is_always_connected(self):
        assert check_storage_connectivity(InMemoryProfileStore()) is True

    def test_blob_store_empty_container_is_connected(self):
        mock_container = MagicMock()
        mock_container.list_blobs.return_value = iter([])
        assert check_storage_connectivity(BlobProfileStore(mock_container)) is True

    def test_blob_store_error(self):
        mock_container = MagicMock()
        mock_container.list_blobs.side_effect = HttpResponseError(message="denied")
        assert check_storage_connectivity(BlobProfileStore(mock_container)) is False


def test_get_profile_store_defaults_to_memory(mock_settings):
    store = get_profile_store()
    assert isinstance(store, InMemoryProfileStore)
    assert get_profile_store() is store
