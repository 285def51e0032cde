"""Checkout error taxonomy and the middleware that renders it."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error surfaced to the storefront as a JSON error body.

    Subclasses fix the HTTP status and error type; raising code only
    supplies the message (and optionally field-level details).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(APIError):
    """Unknown SKU or unknown order/session reference."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"
    default_message = "Resource not found"


class ValidationError(APIError):
    """Malformed or missing request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"
    default_message = "Validation error"


class UpstreamUnavailableError(APIError):
    """The payment provider could not be reached or returned garbage."""

    error_type = "upstream_unavailable"
    default_message = "Upstream service unavailable"


class AuthenticationError(APIError):
    """Inbound webhook failed its shared-token check."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"
    default_message = "Authentication required"


class SinkDeliveryError(Exception):
    """A marketing sink rejected or failed an outbound event.

    Never rendered to clients; the event fanout logs and absorbs it.
    """

    def __init__(self, sink: str, message: str, status_code: int | None = None) -> None:
        self.sink = sink
        self.status_code = status_code
        super().__init__(f"{sink}: {message}")


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Render an ``ErrorResponse`` body with the given status.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional field-level details.
        request_id: Optional ``X-Request-ID`` echoed back for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    body = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Turn exceptions escaping a route into JSON error responses.

    ``APIError`` keeps its own status; anything unexpected becomes a 500
    with a generic message and a logged stack trace.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        return await call_next(request)

    except APIError as e:
        log = logger.error if e.status_code >= 500 else logger.warning
        log(
            "%s %s failed: %s - %s",
            request.method,
            request.url.path,
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except HTTPException as e:
        logger.warning("HTTP exception: %s - %s", e.status_code, e.detail, extra={"request_id": request_id})
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        logger.error(
            "Unhandled exception on %s: %s\n%s",
            request.url.path,
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
