"""Domain model type definitions."""

from src.models.events import EventName, FanoutResult, OutboundEvent, RequestContext
from src.models.order import (
    AttributionParams,
    ContactInfo,
    LineItem,
    NormalizedPurchase,
    OrderSnapshot,
    OrderStatus,
    ValidatedOrder,
)
from src.models.product import PriceLedgerEntry, Product

__all__ = [
    "AttributionParams",
    "ContactInfo",
    "EventName",
    "FanoutResult",
    "LineItem",
    "NormalizedPurchase",
    "OrderSnapshot",
    "OrderStatus",
    "OutboundEvent",
    "PriceLedgerEntry",
    "Product",
    "RequestContext",
    "ValidatedOrder",
]
