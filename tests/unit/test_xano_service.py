"""Unit tests for Xano story persistence."""

import json

import httpx
import pytest

from petstory.api.models.upstream import XanoStoryPayload
from petstory.api.services.xano_service import XanoService, create_xano_client
from petstory.core.errors import PersistenceError

from tests.unit.conftest import XANO_URL, make_settings, mock_http_client


def make_payload(**overrides) -> XanoStoryPayload:
    values = {
        "pims_pet_id": "42",
        "title": "Rex's adventure story",
        "content": "Rex ran home.",
        "tone": "adventure",
    }
    values.update(overrides)
    return XanoStoryPayload(**values)


class TestIsConfigured:

    def test_unconfigured_without_client(self):
        assert XanoService(None).is_configured() is False

    def test_create_client_returns_none_without_base_url(self):
        assert create_xano_client(make_settings()) is None

    @pytest.mark.asyncio
    async def test_create_client_with_base_url_and_key(self):
        client = create_xano_client(make_settings(xano_base_url=XANO_URL, xano_api_key="xk"))
        try:
            assert XanoService(client).is_configured() is True
            assert client.headers["Authorization"] == "Bearer xk"
            assert client.timeout.read == 10.0
        finally:
            await client.aclose()


class TestSaveStory:
    """Tests for XanoService.save_story."""

    @pytest.mark.asyncio
    async def test_posts_payload_and_returns_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 7, "title": "Rex's adventure story"})

        service = XanoService(mock_http_client(XANO_URL, handler))

        record_id = await service.save_story(make_payload(key_points=["brave"]))

        assert record_id == 7
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/generated_stories"
        assert seen["body"] == {
            "pims_pet_id": "42",
            "title": "Rex's adventure story",
            "content": "Rex ran home.",
            "tone": "adventure",
            "suggested_goal": 0,
            "key_points": ["brave"],
            "form_data": {},
        }

    @pytest.mark.asyncio
    async def test_unconfigured_raises(self):
        with pytest.raises(PersistenceError):
            await XanoService(None).save_story(make_payload())

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        service = XanoService(mock_http_client(XANO_URL, lambda request: httpx.Response(500)))

        with pytest.raises(PersistenceError) as exc_info:
            await service.save_story(make_payload())

        assert "Xano save error" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        service = XanoService(mock_http_client(XANO_URL, handler))

        with pytest.raises(PersistenceError):
            await service.save_story(make_payload())

    @pytest.mark.asyncio
    async def test_missing_record_id_raises(self):
        service = XanoService(mock_http_client(XANO_URL, lambda request: httpx.Response(200, json={"ok": True})))

        with pytest.raises(PersistenceError):
            await service.save_story(make_payload())
