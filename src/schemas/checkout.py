"""Checkout and order Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

from src.models.order import ContactInfo, LineItem, OrderSnapshot


class CheckoutItem(BaseModel):
    """A SKU and quantity requested by the browser. Prices are never accepted."""

    model_config = ConfigDict(extra="ignore")

    sku: str = Field(..., min_length=1, description="Product SKU")
    quantity: int = Field(default=1, ge=1, description="Quantity ordered")


class ContactData(BaseModel):
    """Optional buyer contact captured on the checkout form."""

    name: str | None = Field(default=None, description="Full name")
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number in any format")

    def to_contact(self) -> ContactInfo:
        return ContactInfo(name=self.name, email=self.email, phone_digits_only=self.phone)


class UtmData(BaseModel):
    """Marketing attribution values captured by the storefront."""

    model_config = ConfigDict(extra="ignore")

    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None
    src: str | None = None
    sck: str | None = None


class CheckoutIntentCreate(BaseModel):
    """Schema for creating a checkout session via POST /checkout/intent."""

    items: list[CheckoutItem] = Field(default_factory=list, description="Items to purchase")
    utm_data: UtmData | None = Field(default=None, alias="utmData", description="Attribution values")
    contact_data: ContactData | None = Field(default=None, alias="contactData", description="Buyer contact")
    fbc: str | None = Field(default=None, description="Meta click id cookie (_fbc)")
    fbp: str | None = Field(default=None, description="Meta browser id cookie (_fbp)")

    model_config = ConfigDict(populate_by_name=True)


class CheckoutIntentResponse(BaseModel):
    """Schema for checkout session creation response."""

    client_secret: str | None = Field(description="Embedded checkout client secret")
    session_id: str = Field(description="Stripe Checkout Session ID")
    event_id: str = Field(description="InitiateCheckout event id for browser-side deduplication")


class OrderLineItemSchema(BaseModel):
    """Schema for a single line item in an order."""

    id: str | None = Field(default=None, description="Product SKU or Stripe product ID")
    name: str = Field(description="Product name")
    image: str | None = Field(default=None, description="Product image URL")
    quantity: int = Field(ge=0, description="Quantity ordered")
    amount_total: int = Field(description="Line total in minor units")

    @classmethod
    def from_line_item(cls, item: LineItem) -> "OrderLineItemSchema":
        return cls(
            id=item.id,
            name=item.name,
            image=item.image_url,
            quantity=item.quantity,
            amount_total=item.amount_total_minor,
        )


class OrderStatusResponse(BaseModel):
    """Schema for GET /orders/{return_id}."""

    status: str = Field(description="succeeded, processing, failed or unknown")
    amount: int = Field(description="Total amount in minor units")
    currency: str = Field(description="ISO 4217 currency code")
    created: int = Field(description="Creation time, epoch seconds")
    line_items: list[OrderLineItemSchema] = Field(
        default_factory=list,
        alias="lineItems",
        description="Order line items",
    )

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_snapshot(cls, snapshot: OrderSnapshot) -> "OrderStatusResponse":
        return cls(
            status=snapshot.status.value,
            amount=snapshot.total_amount_minor,
            currency=snapshot.currency,
            created=snapshot.created_at_epoch_seconds,
            line_items=[OrderLineItemSchema.from_line_item(item) for item in snapshot.line_items],
        )
