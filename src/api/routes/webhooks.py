"""Webhook API routes for external service integrations."""

import logging

from fastapi import APIRouter, Request, status

from src.api.deps import Checkout
from src.schemas.webhook import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "/hotmart",
    response_model=WebhookAck,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Handle Hotmart webhooks",
    description="Relays approved Hotmart purchases to the marketing sinks. Accepts JSON or form-encoded bodies.",
)
async def hotmart_webhook(request: Request, service: Checkout) -> WebhookAck:
    """Handle a Hotmart sale notification.

    Every parsed delivery is acknowledged with 200, including ignored
    events, so Hotmart does not retry.

    Raises:
        AuthenticationError: 401 if a shared token is configured and missing or wrong.
    """
    service.verify_webhook_token(request.headers.get("x-hotmart-hottok"))

    payload = await request.body()
    logger.debug("Hotmart payload size: %d bytes", len(payload))

    result = await service.handle_sale_webhook(payload, request.headers.get("content-type"))

    if result.ignored or result.purchase is None:
        return WebhookAck(message="Event ignored")

    return WebhookAck(success=True, transaction=result.purchase.reference_id)
