"""Outbound marketing event type definitions."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class EventName(str, Enum):
    """Conversions API event names emitted by the storefront."""

    INITIATE_CHECKOUT = "InitiateCheckout"
    PURCHASE = "Purchase"


@dataclass(frozen=True)
class RequestContext:
    """Browser-side details of the inbound request an event is attributed to."""

    source_url: str
    client_ip: str | None = None
    user_agent: str | None = None
    fbc: str | None = None
    fbp: str | None = None


@dataclass(frozen=True)
class OutboundEvent:
    """A single conversions event, built fresh for every fanout call."""

    event_name: EventName
    event_id: str
    source_url: str
    currency: str
    value: Decimal
    content_ids: tuple[str, ...] = ()
    client_ip: str | None = None
    client_user_agent: str | None = None
    hashed_user_data: dict[str, str] = field(default_factory=dict)
    fbc: str | None = None
    fbp: str | None = None
    event_time: int | None = None

    def custom_data(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "value": float(self.value),
            "content_ids": list(self.content_ids),
            "content_type": "product",
        }


@dataclass(frozen=True)
class FanoutResult:
    """Which sinks accepted the event. Informational only."""

    conversions_sent: bool = False
    attribution_sent: bool = False
