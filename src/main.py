"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import create_error_response, error_handler_middleware
from src.api.middleware.latency_logging import latency_logging_middleware
from src.api.middleware.request_size import request_size_limit_middleware
from src.api.routes import health, products, webhooks
from src.api.routes.checkout import orders_router, router as checkout_router
from src.core.config import get_settings
from src.core.http_client import init_http_client, shutdown_http_client
from src.core.stripe import configure_stripe

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures Stripe and opens the pooled outbound HTTP client on startup,
    closes the client on shutdown.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    configure_stripe()
    logger.info("Stripe SDK configured")

    await init_http_client()
    logger.info("Outbound HTTP client initialized")

    if not settings.meta_capi_enabled:
        logger.warning("Meta CAPI credentials missing; conversions events will be skipped")
    if not settings.utmify_enabled:
        logger.info("UTMify token not set; attribution events disabled")

    yield

    await shutdown_http_client()
    logger.info("Shutting down %s", settings.app_name)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies as 400 validation errors."""
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", "value_error"),
        }
        for error in exc.errors()
    ]
    logger.warning("Request validation failed on %s: %d error(s)", request.url.path, len(details))
    return create_error_response(
        error_type="validation_error",
        message="Invalid request payload",
        status_code=status.HTTP_400_BAD_REQUEST,
        details=details,
        request_id=request.headers.get("X-Request-ID"),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Storefront Checkout API",
        description="Embedded Stripe checkout with Meta CAPI and UTMify purchase reporting",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added first so it sits closest to the routes; latency logging sees rendered errors
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Health routes at root level (no prefix)
    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(products.router)
    api_v1_router.include_router(checkout_router)
    api_v1_router.include_router(orders_router)
    api_v1_router.include_router(webhooks.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
