"""
Health check endpoint with infrastructure checks.
"""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends

from feedback_sync import __version__
from feedback_sync.api.dependencies import ServiceContainer, get_container
from feedback_sync.api.models import ComponentHealth, HealthResponse

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check(check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    """Run a health check and measure its latency."""
    start = time.perf_counter()
    try:
        healthy = await check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the health of the service and its dependencies.",
)
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    """
    Status logic:
    - DOWN: the feedback database is unreachable (submissions fail)
    - DEGRADED: Redis is unreachable (submissions work, alerts are lost)
    - UP: all components operational
    """
    components: dict[str, ComponentHealth] = {}

    if container.database is not None:
        components["database"] = await _check(container.database.health_check)
    if container.alert_queue is not None:
        components["redis"] = await _check(container.alert_queue.health_check)

    if components.get("database", ComponentHealth(status="healthy")).status == "unhealthy":
        status = "DOWN"
    elif components.get("redis", ComponentHealth(status="healthy")).status == "unhealthy":
        status = "DEGRADED"
    else:
        status = "UP"

    if status != "UP":
        logger.warning("Health check not passing", status=status)

    return HealthResponse(
        status=status,
        service="feedback-sync",
        version=__version__,
        components=components,
    )
