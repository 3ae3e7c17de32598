"""Story generation endpoint."""

import json
import logging

from fastapi import APIRouter, Request

from ...core.errors import ValidationError
from ..dependencies import GenerationRateLimit, Stories
from ..models.requests import validate_story_request
from ..models.responses import ErrorResponse, StoryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate-story",
    response_model=StoryResponse,
    response_model_exclude_none=True,
    dependencies=[GenerationRateLimit],
    summary="Generate a pet story",
    description="Generate a story about a pet with the configured LLM. Optionally moderate and save it.",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        422: {"model": ErrorResponse, "description": "Story flagged by moderation"},
        429: {"model": ErrorResponse, "description": "Too many AI requests"},
        500: {"model": ErrorResponse, "description": "Story generation failed"},
    },
)
async def generate_story(request: Request, stories: Stories) -> StoryResponse:
    """
    Generate a story for a pet.

    The body is validated by hand rather than by FastAPI so that every
    violation comes back in one 400 response with field paths.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError([
            {"field": "body", "message": "Request body must be valid JSON", "type": "invalid"}
        ])

    story_request = validate_story_request(body)
    logger.info(f"Generating story for {story_request.petName} the {story_request.petType}")
    return await stories.generate_story(story_request)
