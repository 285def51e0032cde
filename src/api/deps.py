"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Request

from src.models.events import RequestContext
from src.services.checkout_service import CheckoutService, get_checkout_service
from src.services.price_ledger_service import PriceLedgerService, get_price_ledger_service

CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Request) -> str | None:
    """Resolve the buyer IP from proxy headers.

    Only the first hop of ``X-Forwarded-For`` is used.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip() or None
    return None


def get_request_context(request: Request) -> RequestContext:
    """Build the browser context attached to outbound marketing events."""
    return RequestContext(
        source_url=request.headers.get("referer") or str(request.url),
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        fbc=request.cookies.get("_fbc"),
        fbp=request.cookies.get("_fbp"),
    )


RequestCtx = Annotated[RequestContext, Depends(get_request_context)]
Checkout = Annotated[CheckoutService, Depends(get_checkout_service)]
PriceLedger = Annotated[PriceLedgerService, Depends(get_price_ledger_service)]
