"""Price ledger backed by the products table."""

import logging
from decimal import Decimal, InvalidOperation

from supabase import Client

from src.api.middleware.error_handler import NotFoundError
from src.core.config import get_settings
from src.core.supabase import PRODUCTS_TABLE, get_supabase_client
from src.models.product import PriceLedgerEntry, Product

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "sku, product_id, variant_id, price, currency, stock, data"


class PriceLedgerService:
    """Read-only access to authoritative SKU prices.

    Every amount shown to the payment provider is derived here; prices
    submitted by the client are never trusted.
    """

    def __init__(self, supabase_client: Client | None = None):
        """Initialize price ledger service.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self._supabase_client = supabase_client

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    async def list_products(self) -> list[Product]:
        """List every product row.

        Returns:
            list[Product]: Product rows as stored.
        """
        result = self.supabase.table(PRODUCTS_TABLE).select(PRODUCT_COLUMNS).execute()
        return result.data or []

    async def get_product(self, sku: str) -> Product | None:
        """Get a product row by SKU.

        Args:
            sku: Product SKU.

        Returns:
            Product or None if not found.
        """
        result = (
            self.supabase.table(PRODUCTS_TABLE)
            .select(PRODUCT_COLUMNS)
            .eq("sku", sku)
            .limit(1)
            .execute()
        )
        if result.data:
            return result.data[0]
        return None

    async def get(self, sku: str) -> PriceLedgerEntry:
        """Look up the authoritative price for a SKU.

        Args:
            sku: Product SKU.

        Returns:
            PriceLedgerEntry: Price, currency and display title.

        Raises:
            NotFoundError: If the SKU is unknown or has no usable price.
        """
        row = await self.get_product(sku)
        if row is None:
            raise NotFoundError(f"Product SKU not found: {sku}")

        try:
            price = Decimal(str(row["price"]))
        except (InvalidOperation, KeyError, TypeError) as e:
            logger.error("Product %s has an unusable price: %r", sku, row.get("price"))
            raise NotFoundError(f"Product SKU not found: {sku}") from e

        data = row.get("data") or {}
        return PriceLedgerEntry(
            sku=sku,
            price=price,
            currency=(row.get("currency") or get_settings().stripe_currency).lower(),
            display_title=data.get("title"),
            data=data,
        )


def get_price_ledger_service() -> PriceLedgerService:
    """Get price ledger service instance.

    Returns:
        PriceLedgerService: Price ledger service instance.
    """
    return PriceLedgerService()
