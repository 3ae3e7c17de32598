"""Pydantic models for API requests, responses and upstream records."""

from .requests import StoryLength, StoryRequest, validate_story_request
from .responses import (
    ErrorResponse,
    HealthResponse,
    ModerationResult,
    PetInfo,
    ServiceFlags,
    StoryMetadata,
    StoryResponse,
)
from .upstream import PIMSPet, XanoStoryPayload

__all__ = [
    "StoryLength",
    "StoryRequest",
    "validate_story_request",
    "ErrorResponse",
    "HealthResponse",
    "ModerationResult",
    "PetInfo",
    "ServiceFlags",
    "StoryMetadata",
    "StoryResponse",
    "PIMSPet",
    "XanoStoryPayload",
]
