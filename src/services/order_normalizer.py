"""Derive canonical order snapshots from Stripe objects."""

import logging
from collections.abc import Mapping
from typing import Any

from src.api.middleware.error_handler import UpstreamUnavailableError
from src.models.order import (
    ATTRIBUTION_KEYS,
    AttributionParams,
    ContactInfo,
    LineItem,
    OrderSnapshot,
    OrderStatus,
    ValidatedOrder,
)
from src.services.payment_gateway import (
    SESSION_EXPAND,
    PaymentGateway,
    get_payment_gateway,
    is_session_reference,
)

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "Product"

_STATUS_BY_NAME = {status.value: status for status in OrderStatus}


def field_value(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or plain mapping."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        value = obj.get(key, default)
    else:
        try:
            value = obj[key]
        except (KeyError, TypeError, IndexError):
            value = getattr(obj, key, default)
    return default if value is None else value


def nested_value(obj: Any, *path: str, default: Any = None) -> Any:
    """Follow a path of keys, returning ``default`` at the first gap."""
    current = obj
    for key in path:
        current = field_value(current, key)
        if current is None:
            return default
    return current


def map_session_status(payment_status: str | None) -> OrderStatus:
    """Map a checkout session ``payment_status`` to an order status."""
    normalized = (payment_status or "").lower()
    if normalized == "paid":
        return OrderStatus.SUCCEEDED
    return _STATUS_BY_NAME.get(normalized, OrderStatus.UNKNOWN)


def map_payment_status(status: str | None) -> OrderStatus:
    """Map a payment intent ``status`` to an order status by name."""
    return _STATUS_BY_NAME.get((status or "").lower(), OrderStatus.UNKNOWN)


def build_line_item(item: Any) -> LineItem:
    """Build a line item from an expanded session line item."""
    quantity = int(field_value(item, "quantity", 0))
    price = field_value(item, "price")
    product = field_value(price, "product")

    unit_amount = field_value(price, "unit_amount")
    if unit_amount is None:
        amount_total = int(field_value(item, "amount_total", 0))
        unit_amount = amount_total // quantity if quantity else amount_total

    if isinstance(product, str):
        # unexpanded product reference
        product_id, name, images = product, None, None
    else:
        product_id = nested_value(product, "metadata", "sku") or field_value(product, "id")
        name = field_value(product, "name")
        images = field_value(product, "images")

    return LineItem(
        id=product_id,
        name=name or DEFAULT_ITEM_NAME,
        image_url=images[0] if images else None,
        quantity=quantity,
        unit_amount_minor=int(unit_amount),
    )


def normalize(reference_id: str, provider_object: Any) -> OrderSnapshot:
    """Build an ``OrderSnapshot`` from a session or payment intent.

    Args:
        reference_id: The id the object was retrieved by.
        provider_object: Checkout session (``cs_`` prefix) or payment intent.

    Returns:
        OrderSnapshot: Canonical order view.

    Raises:
        UpstreamUnavailableError: If the object is missing required fields.
    """
    try:
        if is_session_reference(reference_id):
            items = nested_value(provider_object, "line_items", "data", default=[])
            return OrderSnapshot(
                reference_id=reference_id,
                status=map_session_status(field_value(provider_object, "payment_status")),
                total_amount_minor=int(field_value(provider_object, "amount_total", 0)),
                currency=str(field_value(provider_object, "currency", "")).lower(),
                created_at_epoch_seconds=int(field_value(provider_object, "created", 0)),
                line_items=tuple(build_line_item(item) for item in items),
            )

        return OrderSnapshot(
            reference_id=reference_id,
            status=map_payment_status(field_value(provider_object, "status")),
            total_amount_minor=int(field_value(provider_object, "amount", 0)),
            currency=str(field_value(provider_object, "currency", "")).lower(),
            created_at_epoch_seconds=int(field_value(provider_object, "created", 0)),
        )
    except (TypeError, ValueError) as e:
        logger.error("Malformed provider object for %s: %s", reference_id, str(e))
        raise UpstreamUnavailableError("Failed to validate order") from e


def extract_contact(provider_object: Any) -> ContactInfo:
    """Buyer contact from a checkout session, empty for payment intents."""
    details = field_value(provider_object, "customer_details")
    return ContactInfo(
        name=field_value(details, "name"),
        email=field_value(details, "email") or field_value(provider_object, "customer_email"),
        phone_digits_only=field_value(details, "phone"),
    )


def extract_tracking(provider_object: Any) -> AttributionParams:
    """Attribution metadata stored on the session at checkout-intent time."""
    metadata = field_value(provider_object, "metadata") or {}
    if not isinstance(metadata, Mapping):
        metadata = {key: field_value(metadata, key) for key in ATTRIBUTION_KEYS}
    return AttributionParams.from_mapping(dict(metadata))


class OrderNormalizer:
    """Validates a reference against Stripe and normalizes the result."""

    def __init__(self, gateway: PaymentGateway | None = None) -> None:
        """Initialize order normalizer.

        Args:
            gateway: Optional payment gateway for testing.
        """
        self.gateway = gateway or get_payment_gateway()

    async def fetch(self, reference_id: str) -> ValidatedOrder:
        """Retrieve and normalize the order behind a reference.

        Session references are retrieved with their line items and products
        expanded; payment intents carry no itemization.

        Raises:
            NotFoundError: If the provider does not know the reference.
            UpstreamUnavailableError: If the provider call fails.
        """
        if is_session_reference(reference_id):
            provider_object = await self.gateway.retrieve_session(reference_id, expand=SESSION_EXPAND)
            snapshot = normalize(reference_id, provider_object)
            return ValidatedOrder(
                snapshot=snapshot,
                contact=extract_contact(provider_object),
                tracking=extract_tracking(provider_object),
            )

        provider_object = await self.gateway.retrieve_payment(reference_id)
        return ValidatedOrder(snapshot=normalize(reference_id, provider_object))
