"""Liveness and readiness probes."""

from typing import Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from healthnet.config import settings
from healthnet.core.redis_client import check_redis_connection
from healthnet.database import check_database_connection

router = APIRouter(tags=["Health"])

ComponentState = Literal["up", "down"]


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    version: str
    environment: str


class ReadinessResponse(HealthResponse):
    database: ComponentState
    redis: ComponentState


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """The process is up; backing services are not consulted."""
    return HealthResponse(
        status="healthy", version=settings.app_version, environment=settings.environment
    )


@router.get("/health/detailed", response_model=ReadinessResponse, summary="Readiness probe")
async def detailed_health_check(response: Response) -> ReadinessResponse:
    """
    Check PostgreSQL and Redis.

    Without the database nothing works, so its loss answers 503. A Redis
    outage only costs caching and live message delivery and is reported as
    ``degraded`` with a 200.
    """
    database_up = await check_database_connection()
    redis_up = await check_redis_connection()

    if not database_up:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="healthy" if database_up and redis_up else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="up" if database_up else "down",
        redis="up" if redis_up else "down",
    )


@router.get("/ping", summary="Ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
