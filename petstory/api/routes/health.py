"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from ..dependencies import AppSettings
from ..models.responses import HealthResponse, ServiceFlags

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(settings: AppSettings) -> HealthResponse:
    """Liveness probe that also reports which upstream services are configured."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.version,
        environment=settings.environment,
        services=ServiceFlags(
            openai=bool(settings.openai_api_key),
            pims=settings.pims_configured,
            xano=settings.xano_configured,
        ),
    )
