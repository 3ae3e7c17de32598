"""Pytest fixtures for unit and API tests.

Upstream services are faked at the client level: the OpenAI client is a
MagicMock with AsyncMock endpoints, and PIMS/Xano calls go through
httpx.MockTransport handlers.
"""

from types import SimpleNamespace
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from petstory.api.dependencies import ServiceContainer
from petstory.api.main import create_app
from petstory.api.services import OpenAIService, PIMSService, StoryService, XanoService
from petstory.config import Settings

PIMS_URL = "https://pims.test/api"
XANO_URL = "https://xano.test/api"


def make_completion(content: Optional[str]):
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def make_moderation(flagged: bool):
    """Build an object shaped like an OpenAI moderation response."""
    return SimpleNamespace(results=[SimpleNamespace(flagged=flagged)])


def make_words(count: int) -> str:
    """A story of exactly count whitespace-separated words."""
    return " ".join(f"word{i}" for i in range(count))


def mock_http_client(base_url: str, handler: Callable[[httpx.Request], httpx.Response]):
    return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler))


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "test-openai-key",
        "pims_base_url": PIMS_URL,
        "pims_configured": True,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def openai_client():
    """A fake AsyncOpenAI client with a default 3-word story."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_completion("Rex ran home."))
    client.moderations.create = AsyncMock(return_value=make_moderation(False))
    return client


@pytest.fixture
def pims_routes():
    """Map of request path -> httpx.Response (or exception) for the fake PIMS.

    Paths not in the map answer 404.
    """
    return {}


@pytest.fixture
def pims_client(pims_routes):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        result = pims_routes.get(path)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return result

    return mock_http_client(PIMS_URL, handler)


@pytest.fixture
def pims_service(pims_client):
    return PIMSService(pims_client)


@pytest.fixture
def xano_service():
    """Unconfigured persistence."""
    return XanoService(None)


@pytest.fixture
def story_service(openai_client, xano_service, settings):
    return StoryService(OpenAIService(openai_client, settings.openai_model), xano_service, settings)


def build_client(settings: Settings, services: ServiceContainer, **client_kwargs) -> TestClient:
    return TestClient(create_app(settings, services=services), **client_kwargs)


@pytest.fixture
def services(story_service, pims_service, xano_service):
    return ServiceContainer(
        story_service=story_service,
        pims_service=pims_service,
        xano_service=xano_service,
    )


@pytest.fixture
def client(settings, services):
    """TestClient over the real app with faked upstreams."""
    with build_client(settings, services) as client:
        yield client
