"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from gametracker.config import settings
from gametracker.core.redis_client import check_redis_connection
from gametracker.database import check_database_connection
from gametracker.dependencies import SteamApi

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Detailed health check response model."""

    database: str
    redis: str
    steam_api_calls_remaining: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check(steam_api: SteamApi) -> DetailedHealthResponse:
    """
    Detailed health check with database, Redis and Steam quota status.

    Redis only counts towards overall health when it backs shared state.
    """
    db_healthy = await check_database_connection()

    if settings.state_backend == "redis":
        redis_healthy = await check_redis_connection()
        redis_status = "healthy" if redis_healthy else "unhealthy"
    else:
        redis_healthy = True
        redis_status = "not_configured"

    return DetailedHealthResponse(
        status="healthy" if db_healthy and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        redis=redis_status,
        steam_api_calls_remaining=steam_api.get_rate_limit_status().remaining,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}
