"""Story service: prompt -> completion -> moderation -> persistence."""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from ...config import Settings
from ...core.errors import ContentModerationError, GenerationError, PersistenceError
from ...core.prompts import (
    DEFAULT_THEME,
    TEMPERATURE,
    build_story_prompt,
    max_tokens_for_length,
    system_prompt,
)
from ..logging import story_logger
from ..models.requests import StoryRequest
from ..models.responses import ModerationResult, PetInfo, StoryMetadata, StoryResponse
from ..models.upstream import XanoStoryPayload
from .openai_service import OpenAIService
from .xano_service import XanoService

logger = logging.getLogger(__name__)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def build_pet_info(request: StoryRequest) -> PetInfo:
    """Echo the pet fields of a request, omitting absent optional ones."""
    age = request.petAge
    if age is not None and float(age).is_integer():
        age = int(age)
    return PetInfo(
        name=request.petName,
        type=request.petType,
        breed=request.petBreed or None,
        age=age,
    )


class StoryService:
    """Generates pet stories for validated requests."""

    def __init__(
        self,
        openai: OpenAIService,
        xano: XanoService,
        settings: Settings,
    ):
        self.openai = openai
        self.xano = xano
        self.settings = settings

    async def generate_story(self, request: StoryRequest) -> StoryResponse:
        """
        Generate a story for a validated request.

        Makes one completion call, then optionally one moderation call and
        one persistence call. Nothing is retried.

        Raises:
            GenerationError: if the completion call fails or yields no story
            ContentModerationError: if the story is flagged and flagged
                stories are configured to be blocked
        """
        start = time.monotonic()
        length = request.storyLength.value if request.storyLength else "medium"
        story_logger.generation_started(request.petName, length)

        json_mode = self.settings.openai_json_mode
        try:
            content = await self.openai.complete(
                build_story_prompt(request),
                system_prompt=system_prompt(json_mode),
                max_tokens=max_tokens_for_length(request.storyLength),
                temperature=TEMPERATURE,
                json_mode=json_mode,
            )
        except GenerationError as e:
            story_logger.generation_failed(request.petName, e, stage="completion")
            raise

        story = self._extract_story(content, json_mode)
        if not story:
            error = GenerationError(detail="No story generated")
            story_logger.generation_failed(request.petName, error, stage="completion")
            raise error

        theme = request.storyTheme or DEFAULT_THEME
        metadata = StoryMetadata(
            generatedAt=datetime.now(timezone.utc),
            wordCount=count_words(story),
            theme=theme,
            petInfo=build_pet_info(request),
        )

        if request.moderationCheck:
            metadata.moderation = await self._moderate(request, story)

        if request.saveStory:
            metadata.storedRecordId = await self._persist(request, story, theme)

        story_logger.generation_completed(
            request.petName, metadata.wordCount, time.monotonic() - start
        )
        return StoryResponse(story=story, metadata=metadata)

    @staticmethod
    def _extract_story(content: Optional[str], json_mode: bool) -> Optional[str]:
        if not content or not content.strip():
            return None
        if not json_mode:
            return content

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise GenerationError(detail=f"Completion was not valid JSON: {e}") from e

        story = data.get("story") if isinstance(data, dict) else None
        if not isinstance(story, str):
            raise GenerationError(detail="Completion JSON has no 'story' string")
        return story

    async def _moderate(self, request: StoryRequest, story: str) -> ModerationResult:
        flagged = await self.openai.moderate(story)
        if flagged:
            story_logger.story_flagged(request.petName)
            if self.settings.moderation_block_flagged:
                raise ContentModerationError(
                    "The generated story did not pass content moderation. Please try again."
                )
        return ModerationResult(checked=True, flagged=flagged)

    async def _persist(self, request: StoryRequest, story: str, theme: str):
        """Best-effort save. Returns the stored record id or None."""
        if not self.xano.is_configured():
            logger.info("Story persistence requested but Xano is not configured, skipping")
            return None

        payload = XanoStoryPayload(
            pims_pet_id=request.pimsPetId,
            title=f"{request.petName}'s {theme} story",
            content=story,
            tone=theme,
            suggested_goal=request.suggestedGoal,
            key_points=list(request.keyPoints),
            form_data=request.model_dump(mode="json"),
        )
        try:
            return await self.xano.save_story(payload)
        except PersistenceError as e:
            logger.warning(
                f"Story persistence failed, returning story anyway: {e.detail or e}",
                extra={"upstream": "xano", "error_type": type(e).__name__},
            )
            return None
