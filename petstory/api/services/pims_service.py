"""Pet record lookups against the veterinary PIMS."""

import logging
from typing import Any, Optional

import httpx

from ...config import Settings
from ...core.errors import UpstreamCause, UpstreamError
from ...core.pets import extract_pet_records, pet_id_matches
from ..models.upstream import PIMSPet

logger = logging.getLogger(__name__)

PATIENTS_PATH = "/pims/patients"


def create_pims_client(settings: Settings) -> httpx.AsyncClient:
    """Build the PIMS HTTP client shared by every request."""
    headers = {"Content-Type": "application/json"}
    if settings.pims_api_key:
        headers["Authorization"] = f"Bearer {settings.pims_api_key}"

    return httpx.AsyncClient(
        base_url=settings.pims_base_url,
        timeout=settings.pims_timeout,
        headers=headers,
    )


def classify_error(error: Exception) -> UpstreamError:
    """Translate a transport or HTTP-status failure into an UpstreamError."""
    if isinstance(error, (httpx.ConnectError, httpx.TimeoutException)):
        return UpstreamError(UpstreamCause.CONNECTION_REFUSED, detail=str(error))

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 401:
            cause = UpstreamCause.AUTHENTICATION_FAILED
        elif status == 403:
            cause = UpstreamCause.ACCESS_DENIED
        elif status == 404:
            cause = UpstreamCause.NOT_FOUND
        elif status >= 500:
            cause = UpstreamCause.SERVER_ERROR
        else:
            cause = UpstreamCause.UNKNOWN
        return UpstreamError(cause, upstream_status=status, detail=str(error))

    return UpstreamError(UpstreamCause.UNKNOWN, detail=str(error))


class PIMSService:
    """Reads pet records from the PIMS over one shared HTTP client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _get_json(self, path: str) -> Any:
        response = await self.client.get(path)
        response.raise_for_status()
        return response.json()

    async def list_pets(self) -> list[PIMSPet]:
        """
        Fetch every pet from the PIMS.

        Raises:
            UpstreamError: classified by cause (connection, auth, 404, 5xx...)
        """
        try:
            body = await self._get_json(PATIENTS_PATH)
        except (httpx.HTTPError, ValueError) as e:
            error = classify_error(e)
            logger.error(
                f"PIMS API error: {e}",
                extra={"upstream": "pims", "error_type": error.cause.value},
            )
            raise error from e

        return [PIMSPet.model_validate(record) for record in extract_pet_records(body)]

    async def get_pet(self, pet_id: str) -> Optional[PIMSPet]:
        """
        Fetch one pet, falling back to a scan of the full list.

        The direct by-id endpoint is not available on every PIMS, so any
        failure there (including 404) falls back to list_pets(). Returns
        None when no pet matches.

        Raises:
            UpstreamError: if the fallback listing fails
        """
        try:
            body = await self._get_json(f"{PATIENTS_PATH}/{pet_id}")
        except (httpx.HTTPError, ValueError) as e:
            logger.info(f"Pet detail endpoint not available ({e}), using fallback")
        else:
            if isinstance(body, dict) and body:
                return PIMSPet.model_validate(body)
            logger.info("Pet detail endpoint returned no record, using fallback")

        for pet in await self.list_pets():
            if pet_id_matches(pet.id, pet_id):
                return pet
        return None
