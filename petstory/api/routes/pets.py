"""Pet record endpoints, proxied to the PIMS."""

import logging

from fastapi import APIRouter, HTTPException, status

from ..dependencies import Pets

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    summary="List pets",
    description="Fetch all pets from the veterinary practice system.",
    responses={502: {"description": "PIMS unreachable or rejected the request"}},
)
async def list_pets(pims: Pets) -> list[dict]:
    """List all pets from the PIMS."""
    logger.info("Fetching all pets from PIMS...")
    pets = await pims.list_pets()
    logger.info(f"Successfully fetched {len(pets)} pets from PIMS")
    return [pet.to_payload() for pet in pets]


@router.get(
    "/{pet_id}",
    summary="Get a pet",
    description="Fetch one pet by id, scanning the full list if the PIMS has no by-id endpoint.",
    responses={
        400: {"description": "Pet ID missing"},
        404: {"description": "Pet not found"},
        502: {"description": "PIMS unreachable or rejected the request"},
    },
)
async def get_pet(pet_id: str, pims: Pets) -> dict:
    """Get one pet by ID."""
    pet_id = pet_id.strip()
    if not pet_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Pet ID required", "message": "Please provide a valid pet ID"},
        )

    logger.info(f"Fetching pet {pet_id} from PIMS...")
    pet = await pims.get_pet(pet_id)

    if pet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Pet not found", "message": f"Pet with ID {pet_id} not found"},
        )

    logger.info(f"Successfully fetched pet {pet_id} from PIMS")
    return pet.to_payload()
