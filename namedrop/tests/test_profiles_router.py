"""Endpoint tests for profile preview and link-click tracking."""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient


def _client():
    from namedrop.main import app

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestPreview:
    @pytest.mark.asyncio
    async def test_returns_published_profile(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.get("/api/preview/alice")

        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Alice Moreno"
        assert data["isPublished"] is True
        assert data["externalLinks"][0]["id"] == "site"

    @pytest.mark.asyncio
    async def test_preview_records_view(self, mock_settings, profile_store):
        async with _client() as client:
            await client.get("/api/preview/alice", headers={"referer": "https://x.test"})

        assert profile_store.get_profile(1).view_count == 1
        assert profile_store.views[0].referrer == "https://x.test"

    @pytest.mark.asyncio
    async def test_unpublished_is_404(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.get("/api/preview/draft")
        assert resp.status_code == 404
        assert profile_store.views == []

    @pytest.mark.asyncio
    async def test_missing_is_404(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.get("/api/preview/nobody")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_store_error_is_500(self, mock_settings, profile_store, mocker):
        mocker.patch.object(
            profile_store, "get_profile_by_slug", side_effect=RuntimeError("down")
        )
        async with _client() as client:
            resp = await client.get("/api/preview/alice")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to fetch profile"

    @pytest.mark.asyncio
    async def test_rate_limited_after_max(self, mock_settings, profile_store):
        with patch("namedrop.routers.profiles.RATE_LIMIT_MAX", 2):
            async with _client() as client:
                assert (await client.get("/api/preview/alice")).status_code == 200
                assert (await client.get("/api/preview/alice")).status_code == 200
                resp = await client.get("/api/preview/alice")
        assert resp.status_code == 429


class TestLinkClick:
    @pytest.mark.asyncio
    async def test_records_click(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.post(
                "/api/click/1/site",
                json={"url": "https://alice.dev"},
                headers={"user-agent": "pytest"},
            )

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        profile = profile_store.get_profile(1)
        assert profile.link_click_count == 1
        assert profile.external_links[0].click_count == 1
        click = profile_store.clicks[0]
        assert click.link_url == "https://alice.dev"
        assert click.user_agent == "pytest"

    @pytest.mark.asyncio
    async def test_missing_url_is_422(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.post("/api/click/1/site", json={})
        assert resp.status_code == 422
        assert profile_store.clicks == []

    @pytest.mark.asyncio
    async def test_invalid_profile_id_is_422(self, mock_settings, profile_store):
        async with _client() as client:
            resp = await client.post("/api/click/abc/site", json={"url": "https://x"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_store_error_is_500(self, mock_settings, profile_store, mocker):
        mocker.patch.object(
            profile_store, "record_link_click", side_effect=RuntimeError("down")
        )
        async with _client() as client:
            resp = await client.post("/api/click/1/site", json={"url": "https://x"})
        assert resp.status_code == 500
