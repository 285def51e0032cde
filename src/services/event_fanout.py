"""Fan out checkout and purchase events to the marketing sinks."""

import logging
from decimal import Decimal

from src.api.middleware.error_handler import SinkDeliveryError
from src.core.config import Settings, get_settings
from src.core.hashing import build_hashed_user_data
from src.models.events import EventName, FanoutResult, OutboundEvent, RequestContext
from src.models.order import AttributionParams, ContactInfo, NormalizedPurchase, OrderSnapshot
from src.services.attribution_client import AttributionClient, build_attribution_payload
from src.services.conversions_client import ConversionsClient
from src.services.exchange_rate_service import ExchangeRateService

logger = logging.getLogger(__name__)


def minor_to_major(amount_minor: int) -> Decimal:
    """Convert minor units to a major-unit decimal value."""
    return Decimal(amount_minor) / Decimal(100)


class EventFanout:
    """Emits a conversions event and, for purchases, an attribution event.

    The two sinks are independent and best-effort: any failure is logged and
    absorbed so the enclosing request always completes. Calls run one after
    the other; the attribution call is skipped entirely when no UTMify token
    is configured.
    """

    def __init__(
        self,
        conversions: ConversionsClient | None = None,
        attribution: AttributionClient | None = None,
        exchange_rates: ExchangeRateService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.conversions = conversions or ConversionsClient(settings=self.settings)
        self.attribution = attribution or AttributionClient(settings=self.settings)
        self.exchange_rates = exchange_rates or ExchangeRateService()

    async def emit(self, event: OutboundEvent) -> bool:
        """Deliver a conversions event, absorbing any failure.

        Returns:
            bool: True if the sink accepted the event.
        """
        if not self.conversions.enabled:
            logger.warning("Meta CAPI is not configured. Missing META_PIXEL_ID or META_CAPI_TOKEN.")
            return False

        try:
            await self.conversions.send(event)
            return True
        except SinkDeliveryError as e:
            logger.warning("Conversions event %s not delivered: %s", event.event_id, str(e))
        except Exception as e:
            logger.error("Unexpected error sending conversions event %s: %s", event.event_id, str(e))
        return False

    async def emit_initiate_checkout(
        self,
        *,
        event_id: str,
        context: RequestContext,
        currency: str,
        total_amount_minor: int,
        content_ids: list[str],
        contact: ContactInfo | None = None,
    ) -> FanoutResult:
        """Emit ``InitiateCheckout`` for a freshly created checkout session.

        ``event_id`` is handed back to the browser so the client-side pixel
        can reuse it for deduplication.
        """
        event = OutboundEvent(
            event_name=EventName.INITIATE_CHECKOUT,
            event_id=event_id,
            source_url=context.source_url,
            currency=currency,
            value=minor_to_major(total_amount_minor),
            content_ids=tuple(content_ids),
            client_ip=context.client_ip,
            client_user_agent=context.user_agent,
            hashed_user_data=build_hashed_user_data(contact),
            fbc=context.fbc,
            fbp=context.fbp,
        )
        return FanoutResult(conversions_sent=await self.emit(event))

    async def emit_purchase(
        self,
        snapshot: OrderSnapshot,
        *,
        context: RequestContext,
        contact: ContactInfo | None = None,
        tracking: AttributionParams | None = None,
        platform: str | None = None,
        payment_method: str = "credit_card",
        product_id: str | None = None,
        product_name: str | None = None,
    ) -> FanoutResult:
        """Emit ``Purchase`` to both sinks.

        The conversions event id is the order reference, matching the id the
        browser pixel uses on the success page.
        """
        contact = contact or ContactInfo()
        tracking = tracking or AttributionParams()
        currency = snapshot.currency or self.settings.stripe_currency

        content_ids = [item.id for item in snapshot.line_items if item.id]
        if not content_ids and product_id:
            content_ids = [product_id]

        event = OutboundEvent(
            event_name=EventName.PURCHASE,
            event_id=snapshot.reference_id,
            source_url=context.source_url,
            currency=currency,
            value=minor_to_major(snapshot.total_amount_minor),
            content_ids=tuple(content_ids),
            client_ip=context.client_ip,
            client_user_agent=context.user_agent,
            hashed_user_data=build_hashed_user_data(contact),
            fbc=context.fbc,
            fbp=context.fbp,
        )
        conversions_sent = await self.emit(event)

        attribution_sent = await self._emit_attribution(
            snapshot,
            currency=currency,
            contact=contact,
            tracking=tracking,
            client_ip=context.client_ip,
            platform=platform or self.settings.utmify_platform,
            payment_method=payment_method,
            product_id=product_id,
            product_name=product_name,
        )
        return FanoutResult(conversions_sent=conversions_sent, attribution_sent=attribution_sent)

    async def emit_webhook_purchase(self, purchase: NormalizedPurchase, source_url: str) -> FanoutResult:
        """Emit ``Purchase`` for a sale reported by the sales platform webhook.

        The webhook carries no browser context, so IP and user agent are null.
        """
        return await self.emit_purchase(
            purchase.snapshot,
            context=RequestContext(source_url=source_url),
            contact=purchase.contact,
            tracking=purchase.tracking,
            platform="Hotmart",
            payment_method=purchase.payment_method,
            product_id=purchase.product_id,
            product_name=purchase.product_name,
        )

    async def _emit_attribution(
        self,
        snapshot: OrderSnapshot,
        *,
        currency: str,
        contact: ContactInfo,
        tracking: AttributionParams,
        client_ip: str | None,
        platform: str,
        payment_method: str,
        product_id: str | None,
        product_name: str | None,
    ) -> bool:
        if not self.attribution.enabled:
            return False

        try:
            rate = await self.exchange_rates.get_rate(currency, self.settings.utmify_billing_currency)
            payload = build_attribution_payload(
                snapshot,
                platform=platform,
                payment_method=payment_method,
                contact=contact,
                tracking=tracking.as_metadata(),
                rate=rate,
                client_ip=client_ip,
                product_id=product_id,
                product_name=product_name,
            )
            await self.attribution.send(payload)
            return True
        except SinkDeliveryError as e:
            logger.warning("Attribution event %s not delivered: %s", snapshot.reference_id, str(e))
        except Exception as e:
            logger.error("Unexpected error sending attribution event %s: %s", snapshot.reference_id, str(e))
        return False


def get_event_fanout() -> EventFanout:
    """Get event fanout instance."""
    return EventFanout()
