"""Checkout and order business logic service."""

import hmac
import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from src.api.middleware.error_handler import AuthenticationError, ValidationError
from src.core.config import get_settings
from src.models.events import RequestContext
from src.models.order import AttributionParams, ContactInfo, ValidatedOrder
from src.services.event_fanout import EventFanout, get_event_fanout
from src.services.order_normalizer import OrderNormalizer
from src.services.payment_gateway import PaymentGateway, free_shipping_rate, get_payment_gateway
from src.services.price_ledger_service import PriceLedgerService, get_price_ledger_service
from src.services.webhook_adapter import WebhookParseResult, parse

logger = logging.getLogger(__name__)

RETURN_PATH = "/checkout/success?session_id={CHECKOUT_SESSION_ID}"
HOTMART_CHECKOUT_URL = "https://hotmart.com/checkout/{product_id}"


@dataclass(frozen=True)
class CheckoutIntentResult:
    """What the browser needs to mount the embedded checkout."""

    client_secret: str | None
    session_id: str
    event_id: str


class CheckoutService:
    """Service for the storefront checkout flow.

    Every entry point (checkout intent, order lookup, sale webhook) goes
    through the same normalizer and fanout.
    """

    def __init__(
        self,
        price_ledger: PriceLedgerService | None = None,
        gateway: PaymentGateway | None = None,
        fanout: EventFanout | None = None,
    ) -> None:
        """Initialize checkout service with its collaborators.

        Args:
            price_ledger: Optional price ledger for testing.
            gateway: Optional payment gateway for testing.
            fanout: Optional event fanout for testing.
        """
        self.settings = get_settings()
        self.price_ledger = price_ledger or get_price_ledger_service()
        self.gateway = gateway or get_payment_gateway()
        self.fanout = fanout or get_event_fanout()
        self.normalizer = OrderNormalizer(self.gateway)

    def build_return_url(self, origin: str | None) -> str:
        """Return URL for the embedded checkout, preferring the request origin."""
        base = origin or self.settings.stripe_return_url or "http://localhost:3000"
        return f"{base.rstrip('/')}{RETURN_PATH}"

    async def create_checkout_intent(
        self,
        items: list[dict[str, Any]],
        context: RequestContext,
        origin: str | None = None,
        utm_data: dict[str, Any] | None = None,
        contact: ContactInfo | None = None,
    ) -> CheckoutIntentResult:
        """Create an embedded checkout session priced from the ledger.

        Args:
            items: ``{"sku", "quantity"}`` entries. Client prices are ignored.
            context: Browser context for the InitiateCheckout event.
            origin: Request ``Origin`` header, used for the return URL.
            utm_data: Attribution values to store on the session.
            contact: Optional buyer contact from the checkout form.

        Returns:
            CheckoutIntentResult: Client secret, session id and event id.

        Raises:
            ValidationError: If no items are given.
            NotFoundError: If a SKU is unknown.
            UpstreamUnavailableError: If Stripe fails.
        """
        if not items:
            raise ValidationError("Invalid items in payload")

        currency = self.settings.stripe_currency
        line_items = []
        skus = []
        total_minor = 0

        for item in items:
            sku = item["sku"]
            quantity = int(item.get("quantity") or 1)
            entry = await self.price_ledger.get(sku)
            unit_amount = entry.unit_amount_minor

            line_items.append(
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": entry.display_title or f"Product SKU: {sku}",
                            "metadata": {"sku": sku},
                        },
                        "unit_amount": unit_amount,
                    },
                    "quantity": quantity,
                }
            )
            skus.append(sku)
            total_minor += unit_amount * quantity

        tracking = AttributionParams.from_mapping(utm_data)
        session = await self.gateway.create_session(
            line_items=line_items,
            shipping_options=[free_shipping_rate(currency)],
            return_url=self.build_return_url(origin),
            metadata=tracking.as_metadata(),
            customer_email=contact.email if contact else None,
        )
        logger.info("Created checkout session %s for %d item(s)", session.session_id, len(line_items))

        event_id = str(uuid4())
        await self.fanout.emit_initiate_checkout(
            event_id=event_id,
            context=context,
            currency=currency,
            total_amount_minor=total_minor,
            content_ids=skus,
            contact=contact,
        )

        return CheckoutIntentResult(
            client_secret=session.client_secret,
            session_id=session.session_id,
            event_id=event_id,
        )

    async def get_order_status(self, reference_id: str, context: RequestContext) -> ValidatedOrder:
        """Validate an order against Stripe and report paid orders.

        Args:
            reference_id: Checkout session id (``cs_``) or payment intent id.
            context: Browser context for the Purchase event.

        Returns:
            ValidatedOrder: Snapshot plus buyer contact and tracking metadata.

        Raises:
            ValidationError: If the reference is empty.
            NotFoundError: If Stripe does not know the reference.
            UpstreamUnavailableError: If Stripe fails.
        """
        if not reference_id or not reference_id.strip():
            raise ValidationError("Return ID (payment_intent) is required")

        order = await self.normalizer.fetch(reference_id)

        if order.snapshot.is_succeeded:
            await self.fanout.emit_purchase(
                order.snapshot,
                context=context,
                contact=order.contact,
                tracking=order.tracking,
            )
        else:
            logger.info("Order %s is %s, no purchase event", reference_id, order.snapshot.status.value)

        return order

    def verify_webhook_token(self, token: str | None) -> None:
        """Check the shared token Hotmart sends with each delivery.

        Skipped with a warning when no token is configured.

        Raises:
            AuthenticationError: If a token is configured and does not match.
        """
        expected = self.settings.hotmart_hottok
        if not expected:
            logger.warning("HOTMART_HOTTOK not configured; accepting unauthenticated webhook")
            return
        if not token or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
            raise AuthenticationError("Invalid webhook token")

    async def handle_sale_webhook(self, raw_body: bytes, content_type: str | None = None) -> WebhookParseResult:
        """Relay an approved Hotmart sale to the marketing sinks.

        Ignored events produce no outbound calls.
        """
        result = parse(raw_body, content_type)
        if result.ignored or result.purchase is None:
            return result

        purchase = result.purchase
        await self.fanout.emit_webhook_purchase(
            purchase,
            source_url=HOTMART_CHECKOUT_URL.format(product_id=purchase.product_id or ""),
        )
        logger.info("Relayed Hotmart %s for transaction %s", result.event, purchase.reference_id)
        return result


def get_checkout_service() -> CheckoutService:
    """Get checkout service instance."""
    return CheckoutService()
