"""
Shared Todo Backend — Health Check & API Info Routes
=====================================================

What:  GET /health for monitoring and load balancer probes, and
       GET /api/v1 describing the API.
How:   The health check pings the app's database with SELECT 1.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time
from typing import Dict

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field

from sharedtodo import __version__
from sharedtodo.config import settings
from sharedtodo.schemas.common import ApiResponse, CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class ApiInfo(CamelModel):
    name: str
    version: str
    environment: str
    endpoints: Dict[str, str]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


api_router = APIRouter(tags=["Meta"])


@api_router.get("", response_model=ApiResponse[ApiInfo], summary="API information")
async def api_info() -> ApiResponse[ApiInfo]:
    prefix = settings.api_prefix
    return ApiResponse[ApiInfo](
        data=ApiInfo(
            name="Shared Todo API",
            version=__version__,
            environment=settings.environment,
            endpoints={
                "auth": f"{prefix}/auth",
                "notes": f"{prefix}/notes",
                "tasks": f"{prefix}/tasks",
                "invitations": f"{prefix}/invitations",
                "health": "/health",
            },
        )
    )
