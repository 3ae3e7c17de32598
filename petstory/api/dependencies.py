"""FastAPI dependency injection for settings, services and rate limits."""

from dataclasses import dataclass
from typing import Annotated, Optional

import httpx
from fastapi import Depends, Request, Response
from openai import AsyncOpenAI

from ..config import Settings
from .security import FixedWindowRateLimiter, get_client_ip
from .services import (
    OpenAIService,
    PIMSService,
    StoryService,
    XanoService,
    create_pims_client,
    create_xano_client,
)


@dataclass
class ServiceContainer:
    """Services built once per process and shared by every request."""

    story_service: StoryService
    pims_service: PIMSService
    xano_service: XanoService
    openai_client: Optional[AsyncOpenAI] = None
    pims_client: Optional[httpx.AsyncClient] = None
    xano_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        """Create the upstream clients and wire the services around them."""
        openai_client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout,
            max_retries=0,
        )
        pims_client = create_pims_client(settings)
        xano_client = create_xano_client(settings)

        xano_service = XanoService(xano_client)
        return cls(
            story_service=StoryService(
                OpenAIService(openai_client, settings.openai_model),
                xano_service,
                settings,
            ),
            pims_service=PIMSService(pims_client),
            xano_service=xano_service,
            openai_client=openai_client,
            pims_client=pims_client,
            xano_client=xano_client,
        )

    async def aclose(self) -> None:
        """Close the upstream clients this container owns."""
        if self.pims_client is not None:
            await self.pims_client.aclose()
        if self.xano_client is not None:
            await self.xano_client.aclose()
        if self.openai_client is not None:
            await self.openai_client.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_story_service(
    services: Annotated[ServiceContainer, Depends(get_services)]
) -> StoryService:
    """Get the shared StoryService."""
    return services.story_service


def get_pims_service(
    services: Annotated[ServiceContainer, Depends(get_services)]
) -> PIMSService:
    """Get the shared PIMSService."""
    return services.pims_service


async def limit_generation(request: Request, response: Response) -> None:
    """Stricter rate limit for LLM-backed endpoints. Health checks are exempt.

    Raises:
        RateLimitError: when the client has used up the generation window
    """
    if request.url.path == "/api/health":
        return
    settings: Settings = request.app.state.settings
    limiter: FixedWindowRateLimiter = request.app.state.generation_limiter
    headers = await limiter.hit(get_client_ip(request, settings.trust_proxy_headers))
    response.headers.update(headers)


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
Stories = Annotated[StoryService, Depends(get_story_service)]
Pets = Annotated[PIMSService, Depends(get_pims_service)]
GenerationRateLimit = Depends(limit_generation)
