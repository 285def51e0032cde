"""Request latency logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds in milliseconds. Order lookups and webhooks wait on the
# marketing sinks, so they are the usual offenders.
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000
HEALTH_LOG_THRESHOLD_MS = 100

HEALTH_PATHS = ("/health", "/health/ready")


def _log_level(status_code: int, latency_ms: float, is_health_check: bool) -> int | None:
    if is_health_check:
        return logging.DEBUG if latency_ms > HEALTH_LOG_THRESHOLD_MS else None
    if status_code >= 500 or latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
        return logging.ERROR
    if status_code >= 400 or latency_ms > SLOW_REQUEST_THRESHOLD_MS:
        return logging.WARNING
    return logging.INFO


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency of every request.

    Health probes are only logged, at debug level, when slow.
    """
    start_time = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        level = _log_level(status_code, latency_ms, request.url.path in HEALTH_PATHS)
        if level is not None:
            slow = " (slow)" if latency_ms > SLOW_REQUEST_THRESHOLD_MS else ""
            logger.log(
                level,
                "%s %s - %d - %.2fms%s",
                request.method,
                request.url.path,
                status_code,
                latency_ms,
                slow,
                extra={"request_id": request.headers.get("X-Request-ID")},
            )
