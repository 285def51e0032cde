"""Shared outbound HTTP client for marketing sinks and exchange rates."""

import logging

import httpx

from src.core.config import get_settings

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None


def create_http_client(timeout_seconds: float | None = None) -> httpx.AsyncClient:
    """Create a pooled async HTTP client with an explicit timeout.

    Args:
        timeout_seconds: Per-request timeout. Defaults to the configured value.

    Returns:
        httpx.AsyncClient: New client instance.
    """
    if timeout_seconds is None:
        timeout_seconds = get_settings().outbound_timeout_seconds
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))


def get_http_client() -> httpx.AsyncClient:
    """Get or create the global HTTP client instance."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = create_http_client()
    return _http_client


async def init_http_client() -> httpx.AsyncClient:
    """Initialize the shared HTTP client. Call at app startup."""
    return get_http_client()


async def shutdown_http_client() -> None:
    """Close the shared HTTP client. Call at app shutdown."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        logger.info("Outbound HTTP client closed")
    _http_client = None
