"""
Core domain logic for the Pet Story backend.

Pure functions and the error taxonomy; nothing in here performs I/O.
"""

from .errors import (
    ConfigurationError,
    ContentModerationError,
    CORSError,
    GenerationError,
    PersistenceError,
    PetStoryError,
    RateLimitError,
    UpstreamCause,
    UpstreamError,
    ValidationError,
)
from .pets import PET_LIST_SHAPES, PetListShape, extract_pet_records, pet_id_matches
from .prompts import build_story_prompt, max_tokens_for_length

__all__ = [
    # Errors
    "ConfigurationError",
    "ContentModerationError",
    "CORSError",
    "GenerationError",
    "PersistenceError",
    "PetStoryError",
    "RateLimitError",
    "UpstreamCause",
    "UpstreamError",
    "ValidationError",
    # Pets
    "PET_LIST_SHAPES",
    "PetListShape",
    "extract_pet_records",
    "pet_id_matches",
    # Prompts
    "build_story_prompt",
    "max_tokens_for_length",
]
