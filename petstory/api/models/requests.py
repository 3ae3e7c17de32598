"""Pydantic models for API requests, plus the story request validator."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic import ValidationError as PydanticValidationError

from ...core.errors import ValidationError


class StoryLength(str, Enum):
    """Allowed story lengths."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class StoryRequest(BaseModel):
    """Request body for generating a pet story. Immutable once validated."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    petName: StrictStr = Field(..., min_length=1, description="The pet's name")
    petType: StrictStr = Field(..., min_length=1, description="Species, e.g. dog or cat")
    petBreed: Optional[StrictStr] = None
    petAge: Optional[float] = Field(
        default=None, gt=0, strict=True, allow_inf_nan=False, description="Age in years"
    )
    ownerName: StrictStr = Field(..., min_length=1, description="The owner's name")
    storyTheme: Optional[StrictStr] = Field(
        default=None,
        description="Story theme, defaults to adventure",
        examples=["adventure", "mystery", "bedtime"],
    )
    storyLength: Optional[StoryLength] = None
    moderationCheck: StrictBool = Field(
        default=False,
        description="Run the generated story through content moderation",
    )

    # Optional persistence of the generated story
    saveStory: StrictBool = False
    pimsPetId: Optional[StrictStr] = None
    suggestedGoal: float = Field(default=0, ge=0, strict=True, allow_inf_nan=False)
    keyPoints: list[StrictStr] = Field(default_factory=list)


REQUIRED_FIELD_MESSAGES = {
    "petName": "Pet name is required",
    "petType": "Pet type is required",
    "ownerName": "Owner name is required",
}

# pydantic error type -> violation kind reported to clients
_ERROR_KINDS = {
    "missing": "missing",
    "string_too_short": "missing",
    "greater_than": "out_of_range",
    "greater_than_equal": "out_of_range",
    "less_than": "out_of_range",
    "less_than_equal": "out_of_range",
    "finite_number": "out_of_range",
    "enum": "enum_mismatch",
    "literal_error": "enum_mismatch",
}


def _violation(error: dict[str, Any]) -> dict[str, str]:
    field = ".".join(str(part) for part in error["loc"]) or "body"
    error_type = error["type"]
    if error_type.endswith("_type") or error_type.endswith("_parsing"):
        kind = "wrong_type"
    else:
        kind = _ERROR_KINDS.get(error_type, "invalid")

    message = error["msg"]
    if kind == "missing" and field in REQUIRED_FIELD_MESSAGES:
        message = REQUIRED_FIELD_MESSAGES[field]

    return {"field": field, "message": message, "type": kind}


def validate_story_request(body: Any) -> StoryRequest:
    """Validate a decoded JSON body into a StoryRequest.

    Raises:
        ValidationError: listing every violated constraint, each with a
            dotted field path.
    """
    if not isinstance(body, dict):
        raise ValidationError([
            {
                "field": "body",
                "message": "Request body must be a JSON object",
                "type": "wrong_type",
            }
        ])

    try:
        return StoryRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError([_violation(err) for err in e.errors()]) from e
