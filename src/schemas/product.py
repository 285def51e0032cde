"""Product Pydantic schemas for API request/response models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProductResponse(BaseModel):
    """Schema for a single product lookup. Only SKU, price and display data."""

    model_config = ConfigDict(from_attributes=True)

    sku: str = Field(description="Product SKU")
    price: Decimal = Field(description="Unit price in major units")
    data: dict[str, Any] | None = Field(default=None, description="Display payload (title, images, description)")


class ProductListItem(ProductResponse):
    """Schema for a product in the catalog listing."""

    product_id: str | int | None = Field(default=None, description="Catalog product ID")
    variant_id: str | int | None = Field(default=None, description="Catalog variant ID")
    currency: str | None = Field(default=None, description="Currency code")
    stock: int | None = Field(default=None, description="Units in stock")
