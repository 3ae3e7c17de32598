"""Pydantic models for API responses."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel


class PetInfo(BaseModel):
    """Subset of the request echoed back with a story."""

    name: str
    type: str
    breed: Optional[str] = None
    age: Optional[Union[int, float]] = None


class ModerationResult(BaseModel):
    checked: bool
    flagged: bool


class StoryMetadata(BaseModel):
    """Metadata about a generated story."""

    generatedAt: datetime
    wordCount: int
    theme: str
    petInfo: PetInfo
    moderation: Optional[ModerationResult] = None  # Only when moderation was requested
    storedRecordId: Optional[Union[int, str]] = None  # Only when persisted


class StoryResponse(BaseModel):
    """A generated story with its metadata."""

    story: str
    metadata: StoryMetadata


class ServiceFlags(BaseModel):
    openai: bool
    pims: bool
    xano: bool


class HealthResponse(BaseModel):
    """Liveness and feature-flag visibility."""

    status: str
    timestamp: datetime
    version: str
    environment: str
    services: ServiceFlags


class ErrorResponse(BaseModel):
    """JSON envelope for every error response."""

    error: str
    message: Optional[str] = None
    details: Optional[list[dict]] = None
