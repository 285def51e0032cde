"""Meta Conversions API client."""

import logging
import time
from typing import Any

import httpx

from src.api.middleware.error_handler import SinkDeliveryError
from src.core.config import Settings, get_settings
from src.core.http_client import get_http_client
from src.models.events import OutboundEvent

logger = logging.getLogger(__name__)

SINK_NAME = "meta_capi"


def build_conversions_payload(event: OutboundEvent) -> dict[str, Any]:
    """Build the request body for a single conversions event."""
    user_data: dict[str, Any] = {
        "client_ip_address": event.client_ip,
        "client_user_agent": event.client_user_agent,
    }
    if event.fbc:
        user_data["fbc"] = event.fbc
    if event.fbp:
        user_data["fbp"] = event.fbp
    user_data.update(event.hashed_user_data)

    return {
        "data": [
            {
                "event_name": event.event_name.value,
                "event_id": event.event_id,
                "event_time": event.event_time or int(time.time()),
                "action_source": "website",
                "event_source_url": event.source_url,
                "user_data": user_data,
                "custom_data": event.custom_data(),
            }
        ]
    }


class ConversionsClient:
    """Sends server-side events to the Meta Conversions API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._http_client = http_client
        self.settings = settings or get_settings()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = get_http_client()
        return self._http_client

    @property
    def enabled(self) -> bool:
        return self.settings.meta_capi_enabled

    @property
    def events_url(self) -> str:
        base = self.settings.meta_graph_url.rstrip("/")
        return f"{base}/{self.settings.meta_graph_api_version}/{self.settings.meta_pixel_id}/events"

    async def send(self, event: OutboundEvent) -> dict[str, Any]:
        """Send one event.

        Args:
            event: Event to deliver. User data must already be hashed.

        Returns:
            dict: Parsed response body.

        Raises:
            SinkDeliveryError: On network error, non-2xx or malformed body.
        """
        payload = build_conversions_payload(event)
        try:
            response = await self.http.post(
                self.events_url,
                params={"access_token": self.settings.meta_capi_token},
                json=payload,
            )
        except httpx.HTTPError as e:
            raise SinkDeliveryError(SINK_NAME, f"request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise SinkDeliveryError(SINK_NAME, "malformed response body", response.status_code) from e

        if not response.is_success:
            raise SinkDeliveryError(SINK_NAME, f"rejected: {body}", response.status_code)

        logger.info("Meta CAPI success [%s] %s: %s", event.event_name.value, event.event_id, body)
        return body
