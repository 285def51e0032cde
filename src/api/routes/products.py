"""Product catalog API routes (read-only)."""

from fastapi import APIRouter, HTTPException, status

from src.api.deps import PriceLedger
from src.schemas.product import ProductListItem, ProductResponse

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductListItem])
async def list_products(price_ledger: PriceLedger) -> list[ProductListItem]:
    """List every product in the catalog."""
    rows = await price_ledger.list_products()
    return [ProductListItem(**row) for row in rows]


@router.get("/{sku}", response_model=ProductResponse)
async def get_product(sku: str, price_ledger: PriceLedger) -> ProductResponse:
    """Get a product by SKU.

    Only SKU, price and the display payload are returned.
    """
    product = await price_ledger.get_product(sku)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return ProductResponse(sku=product["sku"], price=product["price"], data=product.get("data"))
