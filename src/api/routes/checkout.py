"""Checkout and order routes for the embedded Stripe checkout."""

import dataclasses

from fastapi import APIRouter, Request, status

from src.api.deps import Checkout, RequestCtx
from src.schemas.checkout import (
    CheckoutIntentCreate,
    CheckoutIntentResponse,
    OrderStatusResponse,
)

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "/intent",
    response_model=CheckoutIntentResponse,
    status_code=status.HTTP_200_OK,
    summary="Create embedded checkout session",
    description="Prices the requested SKUs from the catalog, creates a Stripe embedded Checkout Session and emits InitiateCheckout.",
)
async def create_checkout_intent(
    data: CheckoutIntentCreate,
    request: Request,
    context: RequestCtx,
    service: Checkout,
) -> CheckoutIntentResponse:
    """Create an embedded checkout session.

    The returned ``event_id`` should be reused by the browser pixel so the
    server and browser InitiateCheckout events deduplicate.

    Raises:
        ValidationError: 400 if no items are given.
        NotFoundError: 404 if a SKU is unknown.
    """
    if data.fbc or data.fbp:
        context = dataclasses.replace(context, fbc=data.fbc or context.fbc, fbp=data.fbp or context.fbp)

    result = await service.create_checkout_intent(
        items=[item.model_dump() for item in data.items],
        context=context,
        origin=request.headers.get("origin"),
        utm_data=data.utm_data.model_dump() if data.utm_data else None,
        contact=data.contact_data.to_contact() if data.contact_data else None,
    )

    return CheckoutIntentResponse(
        client_secret=result.client_secret,
        session_id=result.session_id,
        event_id=result.event_id,
    )


# Orders router - mounted separately at /orders
orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.get(
    "/{return_id}",
    response_model=OrderStatusResponse,
    summary="Validate order",
    description="Looks up a checkout session or payment intent at Stripe. Paid orders are reported to the marketing sinks.",
)
async def get_order(return_id: str, context: RequestCtx, service: Checkout) -> OrderStatusResponse:
    """Validate an order by its Stripe reference.

    Raises:
        NotFoundError: 404 if Stripe does not know the reference.
        UpstreamUnavailableError: 500 if Stripe cannot be reached.
    """
    order = await service.get_order_status(return_id, context)
    return OrderStatusResponse.from_snapshot(order.snapshot)
