"""Parse Hotmart sale notifications into normalized purchases."""

import json
import logging
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import parse_qsl

from src.models.order import AttributionParams, ContactInfo, NormalizedPurchase, OrderSnapshot, OrderStatus
from src.models.product import to_minor_units

logger = logging.getLogger(__name__)

APPROVED_EVENTS = frozenset({"PURCHASE_APPROVED", "PURCHASE_COMPLETE"})
DEFAULT_CURRENCY = "BRL"
DEFAULT_PRODUCT_NAME = "Produto Hotmart"


@dataclass(frozen=True)
class WebhookParseResult:
    """Outcome of parsing one webhook delivery."""

    ignored: bool
    event: str | None = None
    purchase: NormalizedPurchase | None = None


def decode_body(raw_body: bytes | str) -> dict[str, Any]:
    """Decode a body as JSON, falling back to URL-form-encoding.

    The order is fixed: JSON is always tried first regardless of the
    declared content type.
    """
    text = raw_body.decode("utf-8", errors="replace") if isinstance(raw_body, bytes) else raw_body
    try:
        payload = json.loads(text)
    except ValueError:
        return dict(parse_qsl(text, keep_blank_values=True))
    return payload if isinstance(payload, dict) else {}


def _path(payload: Any, *keys: str) -> Any:
    current = payload
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_present(*values: Any, default: Any = None) -> Any:
    """Return the first value that is neither None nor an empty string."""
    for value in values:
        if value is not None and value != "":
            return value
    return default


def _text(value: Any) -> str | None:
    return str(value) if value is not None else None


def classify_payment_method(payment_type: str | None) -> str:
    """Map a Hotmart payment type onto the attribution payment method."""
    payment_type = str(payment_type or "").upper()
    if "PIX" in payment_type:
        return "pix"
    if "BILLET" in payment_type:
        return "boleto"
    return "credit_card"


def _amount_minor(value: Any) -> int:
    try:
        return to_minor_units(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        logger.warning("Unparseable webhook price %r, treating as 0", value)
        return 0


def _epoch_seconds(value: Any) -> int:
    """Hotmart dates are epoch milliseconds."""
    try:
        millis = int(value)
    except (TypeError, ValueError):
        return int(time.time())
    return millis // 1000 if millis > 10**11 else millis


def extract_purchase(payload: dict[str, Any]) -> NormalizedPurchase | None:
    """Extract a purchase using nested fields first, then flat fields.

    Returns None when no transaction id can be found.
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        data = payload

    transaction = first_present(_path(data, "purchase", "transaction"), payload.get("transaction"))
    if transaction is None:
        return None

    currency = first_present(
        _path(data, "purchase", "price", "currency_code"),
        payload.get("currency"),
        default=DEFAULT_CURRENCY,
    )
    value = first_present(_path(data, "purchase", "price", "value"), payload.get("price"), default=0)

    contact = ContactInfo(
        name=_text(first_present(_path(data, "buyer", "name"), payload.get("name"))),
        email=_text(first_present(_path(data, "buyer", "email"), payload.get("email"))),
        phone_digits_only=_text(
            first_present(
                _path(data, "buyer", "checkout_phone"),
                _path(data, "buyer", "phone"),
                payload.get("phone"),
            )
        ),
        document=_text(first_present(_path(data, "buyer", "document"), payload.get("doc"))),
    )

    product_id = first_present(_path(data, "product", "id"), payload.get("product_id"))
    product_name = first_present(
        _path(data, "product", "name"),
        payload.get("product_name"),
        default=DEFAULT_PRODUCT_NAME,
    )
    payment_type = first_present(_path(data, "purchase", "payment", "type"), payload.get("payment_type"))

    created = first_present(
        _path(data, "purchase", "order_date"),
        _path(data, "purchase", "approved_date"),
        payload.get("purchase_date"),
    )

    tracking = AttributionParams.from_mapping(
        {
            "src": _path(data, "purchase", "origin", "src"),
            "sck": _path(data, "purchase", "origin", "sck"),
        }
    )

    snapshot = OrderSnapshot(
        reference_id=str(transaction),
        status=OrderStatus.SUCCEEDED,
        total_amount_minor=_amount_minor(value),
        currency=str(currency).lower(),
        created_at_epoch_seconds=_epoch_seconds(created),
    )
    return NormalizedPurchase(
        snapshot=snapshot,
        contact=contact,
        product_id=str(product_id) if product_id is not None else None,
        product_name=str(product_name),
        payment_method=classify_payment_method(payment_type),
        tracking=tracking,
    )


def parse(raw_body: bytes | str, content_type: str | None = None) -> WebhookParseResult:
    """Parse a raw webhook delivery.

    Args:
        raw_body: Request body as received.
        content_type: Declared content type. Logged only; decoding always
            tries JSON first.

    Returns:
        WebhookParseResult: ``ignored`` is True for any event other than an
        approved purchase, or when the purchase has no transaction id.
    """
    payload = decode_body(raw_body)
    event = payload.get("event")
    if not isinstance(event, str):
        event = None

    if event not in APPROVED_EVENTS:
        logger.info("Ignoring Hotmart event %r (content-type %s)", event, content_type)
        return WebhookParseResult(ignored=True, event=event)

    purchase = extract_purchase(payload)
    if purchase is None:
        logger.warning("Hotmart %s without transaction id, ignoring", event)
        return WebhookParseResult(ignored=True, event=event)

    return WebhookParseResult(ignored=False, event=event, purchase=purchase)
