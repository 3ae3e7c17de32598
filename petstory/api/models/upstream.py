"""Pydantic models for records exchanged with upstream services (PIMS, Xano)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PIMSPet(BaseModel):
    """A pet record from the PIMS.

    The upstream schema is open-ended and its field types vary between
    practices (photo may be a URL or an image object, phones may be numbers),
    so only id is normalized. Every other field is passed through unchanged
    by to_payload().
    """

    model_config = ConfigDict(extra="allow")

    id: Any = None
    name: Any = None
    species: Any = None
    breed: Any = None
    age: Any = None
    weight: Any = None
    photo: Any = None
    owner_name: Any = None
    owner_email: Any = None
    owner_phone: Any = None
    medical_history: Any = None
    created_at: Any = None
    updated_at: Any = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # Upstream ids arrive as numbers or strings
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    def to_payload(self) -> dict[str, Any]:
        """Serialize the fields the upstream sent, including unknown ones."""
        payload = self.model_dump(mode="json", exclude_unset=True)
        payload.update(self.model_extra or {})
        return payload


class XanoStoryPayload(BaseModel):
    """A generated story as stored in Xano's generated_stories table."""

    pims_pet_id: Optional[str] = None
    title: str
    content: str
    tone: str
    suggested_goal: float = 0
    key_points: list[str] = Field(default_factory=list)
    form_data: dict[str, Any] = Field(default_factory=dict)
