"""UTMify order attribution client."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from src.api.middleware.error_handler import SinkDeliveryError
from src.core.config import Settings, get_settings
from src.core.http_client import get_http_client
from src.models.order import ContactInfo, LineItem, OrderSnapshot
from src.services.exchange_rate_service import convert_minor_amount

logger = logging.getLogger(__name__)

SINK_NAME = "utmify"
ORDER_STATUS_PAID = "paid"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# UTMify rejects orders without customer contact
PLACEHOLDER_NAME = "Comprador"
PLACEHOLDER_EMAIL = "nao_informado@email.com"
PLACEHOLDER_PHONE = "11999999999"


def format_timestamp(moment: datetime) -> str:
    """Format a moment as UTC ``YYYY-MM-DD HH:MM:SS``."""
    return moment.astimezone(timezone.utc).strftime(DATE_FORMAT)


def build_products(
    line_items: tuple[LineItem, ...],
    total_amount_minor: int,
    rate: Decimal,
    fallback_id: str,
    fallback_name: str,
) -> list[dict[str, Any]]:
    """Build the products array, converting each amount independently.

    Without itemization a single synthetic product carries the whole total.
    Per-item rounding is not redistributed, so converted items may not sum
    exactly to the converted total.
    """
    if not line_items:
        return [
            {
                "id": fallback_id,
                "name": fallback_name,
                "planId": "1",
                "planName": "Unico",
                "priceInCents": convert_minor_amount(total_amount_minor, rate),
                "quantity": 1,
            }
        ]

    return [
        {
            "id": item.id or f"{fallback_id}_{idx}",
            "name": item.name,
            "planId": "1",
            "planName": "Unico",
            "priceInCents": convert_minor_amount(item.unit_amount_minor, rate),
            "quantity": item.quantity,
        }
        for idx, item in enumerate(line_items)
    ]


def build_attribution_payload(
    snapshot: OrderSnapshot,
    *,
    platform: str,
    payment_method: str,
    contact: ContactInfo,
    tracking: dict[str, str],
    rate: Decimal,
    client_ip: str | None = None,
    product_id: str | None = None,
    product_name: str | None = None,
    approved_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the canonical UTMify order payload.

    Args:
        snapshot: Order to report.
        platform: Sales platform label.
        payment_method: ``credit_card``, ``pix`` or ``boleto``.
        contact: Plaintext buyer contact (this sink does not take hashes).
        tracking: Attribution metadata captured at checkout time.
        rate: Rate from the order currency to the billing currency.
        client_ip: Buyer IP, when known.
        product_id: Fallback product id for unitemized orders.
        product_name: Fallback product name for unitemized orders.
        approved_at: Approval moment; defaults to now.

    Returns:
        dict: Request body.
    """
    approved_at = approved_at or datetime.now(timezone.utc)
    if snapshot.created_at_epoch_seconds:
        created_at = datetime.fromtimestamp(snapshot.created_at_epoch_seconds, tz=timezone.utc)
    else:
        created_at = approved_at

    total_converted = convert_minor_amount(snapshot.total_amount_minor, rate)

    return {
        "orderId": snapshot.reference_id,
        "platform": platform,
        "paymentMethod": payment_method,
        "status": ORDER_STATUS_PAID,
        "createdAt": format_timestamp(created_at),
        "approvedDate": format_timestamp(approved_at),
        "customer": {
            "name": contact.name or PLACEHOLDER_NAME,
            "email": contact.email or PLACEHOLDER_EMAIL,
            "phone": contact.phone_digits_only or PLACEHOLDER_PHONE,
            "document": contact.document,
            "ip": client_ip,
        },
        "products": build_products(
            snapshot.line_items,
            snapshot.total_amount_minor,
            rate,
            fallback_id=product_id or f"prod_{snapshot.reference_id}",
            fallback_name=product_name or "Produto",
        ),
        "trackingParameters": dict(tracking),
        "commission": {
            "totalPriceInCents": total_converted,
            "gatewayFeeInCents": 0,
            "userCommissionInCents": total_converted,
        },
    }


class AttributionClient:
    """Posts paid orders to UTMify."""

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
        return self.settings.utmify_enabled

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send one order.

        Raises:
            SinkDeliveryError: On network error, non-2xx or malformed body.
        """
        try:
            response = await self.http.post(
                self.settings.utmify_api_url,
                headers={"x-api-token": self.settings.utmify_api_token},
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

        logger.info("UTMify accepted order %s: %s", payload.get("orderId"), body)
        return body
