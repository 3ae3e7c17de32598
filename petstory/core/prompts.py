"""
Prompt construction for pet story generation.

Everything here is pure: no I/O, no configuration. Any validated
StoryRequest renders to a complete prompt.
"""

from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..api.models.requests import StoryLength, StoryRequest


DEFAULT_LENGTH = "medium"
DEFAULT_THEME = "adventure"
TEMPERATURE = 0.8

# Completion token budget per story length
MAX_TOKENS_BY_LENGTH = {
    "short": 200,
    "medium": 400,
    "long": 800,
}

STORYTELLER_SYSTEM_PROMPT = (
    "You are a creative storyteller who writes engaging, heartwarming stories "
    "about pets. Your stories should be family-friendly, imaginative, and capture "
    "the unique personality of each pet."
)

JSON_MODE_INSTRUCTION = (
    " Always respond with valid JSON only, as an object of the form "
    '{"story": "<the full story text>"}.'
)


def system_prompt(json_mode: bool = False) -> str:
    """System instruction sent with every completion call."""
    if json_mode:
        return STORYTELLER_SYSTEM_PROMPT + JSON_MODE_INSTRUCTION
    return STORYTELLER_SYSTEM_PROMPT


def _length_name(length: Optional[Union["StoryLength", str]]) -> str:
    if length is None:
        return DEFAULT_LENGTH
    return getattr(length, "value", length)


def max_tokens_for_length(length: Optional[Union["StoryLength", str]] = None) -> int:
    """Map a story length to its completion token budget (medium when absent)."""
    return MAX_TOKENS_BY_LENGTH.get(_length_name(length), MAX_TOKENS_BY_LENGTH[DEFAULT_LENGTH])


def format_age(age: Union[int, float]) -> str:
    """Render an age without a trailing '.0' for whole numbers."""
    if isinstance(age, float) and age.is_integer():
        return str(int(age))
    return str(age)


def build_story_prompt(request: "StoryRequest") -> str:
    """Render the user prompt for a story request."""
    length = _length_name(request.storyLength)
    theme = request.storyTheme or DEFAULT_THEME

    prompt = (
        f"Write a {length} {theme} story about a {request.petType} "
        f"named {request.petName}"
    )
    if request.petBreed:
        prompt += f" who is a {request.petBreed}"
    if request.petAge is not None:
        prompt += f" and is {format_age(request.petAge)} years old"

    prompt += f". The pet's owner is {request.ownerName}"
    prompt += (
        ". Make the story engaging, heartwarming, and suitable for all ages. "
        f"Include specific details about {request.petName}'s personality "
        f"and the bond with {request.ownerName}."
    )
    return prompt
