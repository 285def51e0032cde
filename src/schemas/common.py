"""Probe and error response schemas shared by every route."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

API_VERSION = "0.1.0"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Probe outcome."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe body. Never touches dependencies."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = API_VERSION


class CheckResult(BaseModel):
    """Outcome of probing one dependency."""

    name: str = Field(description="Dependency name, e.g. database")
    healthy: bool
    latency_ms: float | None = Field(default=None, description="Probe round trip in milliseconds")
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness probe body."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    checks: list[CheckResult] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """One field-level problem, mirroring FastAPI's validation error entries."""

    loc: list[str] | None = Field(default=None, description="Path to the offending field")
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """JSON body of every non-2xx response rendered by the error middleware."""

    error: str = Field(description="Error type, e.g. not_found or upstream_unavailable")
    message: str = Field(description="Human-readable description, safe to show to shoppers")
    details: list[ErrorDetail] | None = None
    request_id: str | None = Field(default=None, description="Echo of the X-Request-ID header")
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build the body from an error's type, message and details."""
        return cls(
            error=error_type,
            message=message,
            details=[ErrorDetail(**d) for d in details] if details else None,
            request_id=request_id,
        )
