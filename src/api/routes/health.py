"""Liveness and readiness probes."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Response, status

from src.core.supabase import check_database_connection
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


async def run_check(name: str, probe: Callable[[], Awaitable[dict[str, Any]]]) -> CheckResult:
    """Run one dependency probe and time it."""
    start_time = time.perf_counter()
    result = await probe()
    return CheckResult(
        name=name,
        healthy=result["healthy"],
        latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        error=result.get("error"),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Returns 200 whenever the process is serving requests.",
)
async def health_check() -> HealthResponse:
    """Return basic health status without touching dependencies."""
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Product database unreachable"}},
    summary="Readiness check",
    description="Checks that the product catalog can be read.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Report readiness; 503 when the product database is unreachable.

    Stripe and the marketing sinks are not probed: the first surfaces per
    request and the others are best-effort.
    """
    checks = [await run_check("database", check_database_connection)]

    ready = all(check.healthy for check in checks)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if ready else HealthStatus.UNHEALTHY,
        checks=checks,
    )
