# standup_sync/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel, Field

from standup_sync.core.config import get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str = Field(..., example="ok")
    app_name: str = Field(..., example="Standup Sync")
    environment: str = Field(
        ...,
        description="Deployment environment (local/test/dev/stage/prod).",
        example="local",
    )
    timezone: str = Field(
        ...,
        description="Timezone that decides which day a session belongs to.",
        example="Asia/Kolkata",
    )
    timestamp_utc: datetime = Field(..., example="2025-01-01T10:30:00Z")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description=(
        "Returns immediately without touching the database or the callable "
        "functions endpoint, so it stays green while those are degraded."
    ),
)
async def health_check() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        timezone=settings.TIMEZONE,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
