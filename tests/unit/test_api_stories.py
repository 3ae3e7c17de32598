"""API tests for POST /api/generate-story."""

from unittest.mock import AsyncMock

import httpx
import pytest
from openai import APIConnectionError

from petstory.api.dependencies import ServiceContainer
from petstory.api.services import OpenAIService, StoryService

from tests.unit.conftest import build_client, make_completion, make_moderation, make_settings, make_words

VALID_BODY = {"petName": "Rex", "petType": "dog", "ownerName": "Alice"}


class TestGenerateStory:
    """Tests for the story generation endpoint."""

    @pytest.mark.e2e
    def test_generates_story_with_word_count_and_default_theme(self, client, openai_client):
        """A mocked 120-word completion comes back with matching metadata."""
        openai_client.chat.completions.create.return_value = make_completion(make_words(120))

        response = client.post("/api/generate-story", json=VALID_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["story"] == make_words(120)
        assert data["metadata"]["wordCount"] == 120
        assert data["metadata"]["theme"] == "adventure"
        assert data["metadata"]["petInfo"] == {"name": "Rex", "type": "dog"}
        assert "generatedAt" in data["metadata"]
        assert "moderation" not in data["metadata"]
        assert "storedRecordId" not in data["metadata"]

    def test_echoes_optional_pet_info(self, client):
        response = client.post(
            "/api/generate-story",
            json={**VALID_BODY, "petBreed": "Beagle", "petAge": 3, "storyTheme": "bedtime"},
        )

        assert response.status_code == 200
        metadata = response.json()["metadata"]
        assert metadata["petInfo"] == {"name": "Rex", "type": "dog", "breed": "Beagle", "age": 3}
        assert metadata["theme"] == "bedtime"

    def test_missing_owner_name_is_400_with_details(self, client, openai_client):
        response = client.post("/api/generate-story", json={"petName": "Rex", "petType": "dog"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation error"
        assert {"field": "ownerName", "message": "Owner name is required", "type": "missing"} in data["details"]
        openai_client.chat.completions.create.assert_not_awaited()

    def test_all_violations_reported(self, client):
        response = client.post(
            "/api/generate-story",
            json={"petName": "", "petAge": -2, "storyLength": "huge"},
        )

        assert response.status_code == 400
        fields = {detail["field"] for detail in response.json()["details"]}
        assert fields == {"petName", "petType", "ownerName", "petAge", "storyLength"}

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/generate-story",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"

    def test_infinite_age_is_400(self, client, openai_client):
        response = client.post(
            "/api/generate-story",
            content=b'{"petName": "Rex", "petType": "dog", "ownerName": "Alice", "petAge": Infinity}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "petAge"
        openai_client.chat.completions.create.assert_not_awaited()

    def test_generation_failure_is_500_with_detail_outside_production(self, client, openai_client):
        openai_client.chat.completions.create.side_effect = APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )

        response = client.post("/api/generate-story", json=VALID_BODY)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to generate story. Please try again."
        assert "OpenAI generation failed" in data["message"]

    def test_generation_failure_hides_detail_in_production(self, services, openai_client):
        openai_client.chat.completions.create.return_value = make_completion("")

        with build_client(make_settings(environment="production"), services) as client:
            response = client.post("/api/generate-story", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate story. Please try again."}

    def test_moderation_flag_in_response(self, client, openai_client):
        openai_client.moderations.create.return_value = make_moderation(True)

        response = client.post("/api/generate-story", json={**VALID_BODY, "moderationCheck": True})

        assert response.status_code == 200
        assert response.json()["metadata"]["moderation"] == {"checked": True, "flagged": True}

    def test_blocked_moderation_is_422(self, openai_client, pims_service, xano_service):
        settings = make_settings(moderation_block_flagged=True)
        story_service = StoryService(
            OpenAIService(openai_client, settings.openai_model), xano_service, settings
        )
        services = ServiceContainer(story_service, pims_service, xano_service)
        openai_client.moderations.create.return_value = make_moderation(True)

        with build_client(settings, services) as client:
            response = client.post("/api/generate-story", json={**VALID_BODY, "moderationCheck": True})

        assert response.status_code == 422
        assert response.json()["error"] == "Content flagged"

    def test_unconfigured_persistence_is_skipped(self, client, xano_service):
        xano_service.save_story = AsyncMock()

        response = client.post("/api/generate-story", json={**VALID_BODY, "saveStory": True})

        assert response.status_code == 200
        xano_service.save_story.assert_not_awaited()
        assert "storedRecordId" not in response.json()["metadata"]


class TestGenerationRateLimit:
    """Tests for the stricter generation rate limit."""

    def test_limit_exceeded_is_429(self, services):
        settings = make_settings(max_requests_per_window=2)

        with build_client(settings, services) as client:
            for _ in range(2):
                assert client.post("/api/generate-story", json=VALID_BODY).status_code == 200
            response = client.post("/api/generate-story", json=VALID_BODY)

        assert response.status_code == 429
        assert response.json() == {
            "error": "Too many AI requests",
            "message": "Please try again later",
            "retryAfter": "15 minutes",
        }
        assert int(response.headers["Retry-After"]) > 0

    def test_success_carries_rate_limit_headers(self, client):
        response = client.post("/api/generate-story", json=VALID_BODY)

        assert response.headers["RateLimit-Limit"] == "10"
        assert response.headers["RateLimit-Remaining"] == "9"

    def test_health_is_not_counted(self, services):
        settings = make_settings(max_requests_per_window=1)

        with build_client(settings, services) as client:
            for _ in range(3):
                assert client.get("/api/health").status_code == 200
            assert client.post("/api/generate-story", json=VALID_BODY).status_code == 200
