"""
Normalization of PIMS pet-list responses.

The PIMS API is not consistent about how it wraps a list of patients. Each
known envelope is described by a PetListShape (a predicate plus an
extractor), and the shapes are tried in priority order. The last shape
accepts any single object and treats it as a one-element list.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PetListShape:
    """One recognizable envelope around a list of pet records."""

    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], list]


def _keyed_list(key: str) -> PetListShape:
    return PetListShape(
        name=key,
        matches=lambda body: isinstance(body, dict) and isinstance(body.get(key), list),
        extract=lambda body: body[key],
    )


# Order matters: first structural match wins
PET_LIST_SHAPES: tuple[PetListShape, ...] = (
    PetListShape(
        name="array",
        matches=lambda body: isinstance(body, list),
        extract=lambda body: body,
    ),
    _keyed_list("items"),
    _keyed_list("data"),
    _keyed_list("patients"),
    _keyed_list("results"),
    PetListShape(
        name="single",
        matches=lambda body: isinstance(body, dict),
        extract=lambda body: [body],
    ),
)


def match_shape(body: Any) -> Optional[PetListShape]:
    """Return the first shape that recognizes the body, if any."""
    for shape in PET_LIST_SHAPES:
        if shape.matches(body):
            return shape
    return None


def extract_pet_records(body: Any) -> list[dict[str, Any]]:
    """Pull the list of raw pet records out of any known PIMS envelope.

    Entries that are not JSON objects are dropped. A body no shape
    recognizes (null, a bare string) yields an empty list.
    """
    shape = match_shape(body)
    if shape is None:
        logger.warning(f"Unexpected PIMS response format: {type(body).__name__}")
        return []
    if shape.name == "single":
        logger.warning("PIMS response has no list envelope, treating as a single pet")

    records = []
    for entry in shape.extract(body):
        if isinstance(entry, dict):
            records.append(entry)
        else:
            logger.warning(f"Skipping non-object PIMS record: {entry!r}")
    return records


def pet_id_matches(pet_id: Any, wanted: str) -> bool:
    """Compare an upstream pet id with a requested id.

    Upstream ids are sometimes numbers and sometimes strings, so "42" matches
    42 and "42", and a numeric-looking request like "042" also matches 42.
    """
    if pet_id is None:
        return False
    candidate = str(pet_id)
    if candidate == wanted:
        return True
    try:
        return candidate == str(int(wanted))
    except ValueError:
        return False
