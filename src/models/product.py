"""Product model type definitions for database operations."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypedDict


class Product(TypedDict):
    """Product table row representation.

    Represents a product stored in the products table. ``data`` is the
    display payload (title, images, description); it never carries pricing.
    """

    sku: str
    product_id: str | None
    variant_id: str | None
    price: Decimal | str
    currency: str | None
    stock: int | None
    data: dict[str, Any] | None


@dataclass(frozen=True)
class PriceLedgerEntry:
    """Authoritative price for a single SKU."""

    sku: str
    price: Decimal
    currency: str
    display_title: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def unit_amount_minor(self) -> int:
        """Unit price in the currency's minor unit."""
        return to_minor_units(self.price)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit decimal amount to integer minor units."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
