"""Order model type definitions for the validation and notification pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OrderStatus(str, Enum):
    """Canonical order status values."""

    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LineItem:
    """A single purchased line, amounts in minor units."""

    name: str
    quantity: int
    unit_amount_minor: int
    id: str | None = None
    image_url: str | None = None

    @property
    def amount_total_minor(self) -> int:
        return self.unit_amount_minor * self.quantity


@dataclass(frozen=True)
class OrderSnapshot:
    """Point-in-time view of an order as reported by the payment provider.

    A new snapshot is built for every lookup or webhook delivery.
    ``reference_id`` is the identifier every downstream sink deduplicates on.
    """

    reference_id: str
    status: OrderStatus
    total_amount_minor: int
    currency: str
    created_at_epoch_seconds: int
    line_items: tuple[LineItem, ...] = ()

    @property
    def is_succeeded(self) -> bool:
        return self.status is OrderStatus.SUCCEEDED


@dataclass(frozen=True)
class ContactInfo:
    """Buyer contact details used only to build outbound event user data."""

    name: str | None = None
    email: str | None = None
    phone_digits_only: str | None = None
    document: str | None = None

    def __post_init__(self) -> None:
        if self.phone_digits_only is not None:
            digits = "".join(ch for ch in str(self.phone_digits_only) if ch.isdigit())
            object.__setattr__(self, "phone_digits_only", digits or None)

    @property
    def first_name(self) -> str | None:
        parts = (self.name or "").split()
        return parts[0] if parts else None

    @property
    def last_name(self) -> str | None:
        parts = (self.name or "").split()
        return " ".join(parts[1:]) if len(parts) > 1 else None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.email or self.phone_digits_only)


ATTRIBUTION_KEYS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
    "src",
    "sck",
)
ATTRIBUTION_MAX_LENGTH = 500


@dataclass(frozen=True)
class AttributionParams:
    """Marketing attribution values captured at checkout-intent time."""

    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "AttributionParams":
        """Build params from an arbitrary mapping.

        Known keys are kept, truncated to ``ATTRIBUTION_MAX_LENGTH``;
        missing or null keys become empty strings.
        """
        raw = raw or {}
        values = {}
        for key in ATTRIBUTION_KEYS:
            value = raw.get(key)
            values[key] = str(value)[:ATTRIBUTION_MAX_LENGTH] if value is not None else ""
        return cls(values=values)

    def get(self, key: str) -> str:
        return self.values.get(key, "")

    def as_metadata(self) -> dict[str, str]:
        """Every known key, absent ones as empty strings."""
        return {key: self.get(key) for key in ATTRIBUTION_KEYS}


@dataclass(frozen=True)
class ValidatedOrder:
    """Result of validating a reference against the payment provider."""

    snapshot: OrderSnapshot
    contact: ContactInfo = field(default_factory=ContactInfo)
    tracking: AttributionParams = field(default_factory=AttributionParams)


@dataclass(frozen=True)
class NormalizedPurchase:
    """A purchase reported by the external sales platform webhook.

    Carries the same fields as ``OrderSnapshot`` plus raw buyer contact and
    product details. Taken as authoritative; never re-validated.
    """

    snapshot: OrderSnapshot
    contact: ContactInfo
    product_id: str | None
    product_name: str
    payment_method: str
    tracking: AttributionParams = field(default_factory=AttributionParams)

    @property
    def reference_id(self) -> str:
        return self.snapshot.reference_id
