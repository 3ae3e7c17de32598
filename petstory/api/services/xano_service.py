"""Persistence of generated stories to Xano."""

import logging
from typing import Optional, Union

import httpx

from ...config import Settings
from ...core.errors import PersistenceError
from ..models.upstream import XanoStoryPayload

logger = logging.getLogger(__name__)

STORIES_PATH = "/generated_stories"


def create_xano_client(settings: Settings) -> Optional[httpx.AsyncClient]:
    """Build the Xano HTTP client, or None when Xano is not configured."""
    if not settings.xano_configured:
        return None

    headers = {"Content-Type": "application/json"}
    if settings.xano_api_key:
        headers["Authorization"] = f"Bearer {settings.xano_api_key}"

    return httpx.AsyncClient(
        base_url=settings.xano_base_url,
        timeout=settings.xano_timeout,
        headers=headers,
    )


class XanoService:
    """Saves stories to Xano. Unconfigured is a normal state, not an error."""

    def __init__(self, client: Optional[httpx.AsyncClient]):
        self.client = client

    def is_configured(self) -> bool:
        return self.client is not None

    async def save_story(self, payload: XanoStoryPayload) -> Union[int, str]:
        """
        Store a generated story and return its record id.

        Callers should check is_configured() first.

        Raises:
            PersistenceError: if Xano is not configured, the call fails, or
                the response carries no record id
        """
        if self.client is None:
            raise PersistenceError(detail="Xano not configured")

        logger.info(
            f"Saving story to Xano: {payload.title!r} (pet {payload.pims_pet_id})",
            extra={"upstream": "xano"},
        )
        try:
            response = await self.client.post(STORIES_PATH, json=payload.model_dump(mode="json"))
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PersistenceError(detail=f"Xano save error: {e}") from e

        record_id = data.get("id") if isinstance(data, dict) else None
        if record_id is None:
            raise PersistenceError(detail="Xano response did not include a record id")

        logger.info(f"Story saved to Xano with id {record_id}", extra={"upstream": "xano"})
        return record_id
