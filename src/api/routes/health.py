"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from infrastructure.database.models import TagModel
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

SERVICE_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    tag_count: int | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """Liveness probe. Does not touch the database."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=SERVICE_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Readiness probe: verifies the database answers and the tags table exists.

    Reports ``degraded`` instead of failing so dashboards can show the reason.
    """
    db_status = "unknown"
    tag_count: int | None = None

    try:
        await db.execute(text("SELECT 1"))
        result = await db.execute(select(func.count()).select_from(TagModel))
        tag_count = result.scalar() or 0
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e.__class__.__name__}"

    overall_status = "healthy" if db_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        service=settings.app_name,
        version=SERVICE_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        tag_count=tag_count,
    )
