"""Stripe checkout session and payment intent lifecycle."""

import logging
from dataclasses import dataclass
from typing import Any

import stripe

from src.api.middleware.error_handler import NotFoundError, UpstreamUnavailableError
from src.core.config import get_settings
from src.core.stripe import get_stripe

logger = logging.getLogger(__name__)

SESSION_PREFIX = "cs_"
SESSION_EXPAND = ["line_items.data.price.product"]


@dataclass(frozen=True)
class CreatedSession:
    """Identifiers handed back after creating an embedded checkout session."""

    session_id: str
    client_secret: str | None


def is_session_reference(reference_id: str) -> bool:
    """Check whether a reference points to a checkout session."""
    return reference_id.startswith(SESSION_PREFIX)


def free_shipping_rate(currency: str) -> dict[str, Any]:
    """Shipping option offered on every checkout: free, 3-5 business days."""
    return {
        "shipping_rate_data": {
            "type": "fixed_amount",
            "fixed_amount": {"amount": 0, "currency": currency},
            "display_name": "Versandkostenfrei (Free Shipping)",
            "delivery_estimate": {
                "minimum": {"unit": "business_day", "value": 3},
                "maximum": {"unit": "business_day", "value": 5},
            },
        },
    }


class PaymentGateway:
    """Thin async wrapper over the Stripe SDK.

    Translates Stripe errors into the API error taxonomy: a missing
    resource becomes ``NotFoundError``, anything else
    ``UpstreamUnavailableError``. Nothing is retried here.
    """

    def __init__(self, stripe_client: Any | None = None) -> None:
        """Initialize payment gateway.

        Args:
            stripe_client: Optional Stripe module or stand-in for testing.
        """
        self.stripe = stripe_client or get_stripe()
        self.settings = get_settings()

    def _ensure_configured(self) -> None:
        if not self.settings.stripe_secret_key:
            raise UpstreamUnavailableError(
                "Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable."
            )

    async def create_session(
        self,
        line_items: list[dict[str, Any]],
        shipping_options: list[dict[str, Any]],
        return_url: str,
        metadata: dict[str, str],
        customer_email: str | None = None,
    ) -> CreatedSession:
        """Create an embedded-mode Checkout Session.

        Args:
            line_items: Stripe ``line_items`` with inline ``price_data``.
            shipping_options: Stripe ``shipping_options``.
            return_url: URL Stripe returns the buyer to.
            metadata: Attribution metadata stored on the session.
            customer_email: Optional pre-filled customer email.

        Returns:
            CreatedSession: Session id and client secret.

        Raises:
            UpstreamUnavailableError: If Stripe rejects or cannot serve the call.
        """
        self._ensure_configured()

        params: dict[str, Any] = {
            "ui_mode": "embedded",
            "mode": "payment",
            "line_items": line_items,
            "locale": self.settings.checkout_locale,
            "billing_address_collection": "required",
            "shipping_address_collection": {
                "allowed_countries": self.settings.shipping_countries_list,
            },
            "shipping_options": shipping_options,
            "return_url": return_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await self.stripe.checkout.Session.create_async(**params)
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session: %s", str(e))
            raise UpstreamUnavailableError("Failed to create checkout session") from e

        return CreatedSession(session_id=session["id"], client_secret=session["client_secret"])

    async def retrieve_session(self, session_id: str, expand: list[str] | None = None) -> Any:
        """Retrieve a checkout session.

        Raises:
            NotFoundError: If Stripe does not know the session.
            UpstreamUnavailableError: On any other Stripe failure.
        """
        self._ensure_configured()
        try:
            return await self.stripe.checkout.Session.retrieve_async(session_id, expand=expand or [])
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                raise NotFoundError("Session not found") from e
            logger.error("Stripe rejected session lookup %s: %s", session_id, str(e))
            raise UpstreamUnavailableError("Failed to validate order") from e
        except stripe.StripeError as e:
            logger.error("Stripe error retrieving session %s: %s", session_id, str(e))
            raise UpstreamUnavailableError("Failed to validate order") from e

    async def retrieve_payment(self, payment_id: str) -> Any:
        """Retrieve a payment intent.

        Raises:
            NotFoundError: If Stripe does not know the payment intent.
            UpstreamUnavailableError: On any other Stripe failure.
        """
        self._ensure_configured()
        try:
            return await self.stripe.PaymentIntent.retrieve_async(payment_id)
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                raise NotFoundError("Order not found") from e
            logger.error("Stripe rejected payment lookup %s: %s", payment_id, str(e))
            raise UpstreamUnavailableError("Failed to validate order") from e
        except stripe.StripeError as e:
            logger.error("Stripe error retrieving payment %s: %s", payment_id, str(e))
            raise UpstreamUnavailableError("Failed to validate order") from e


def get_payment_gateway() -> PaymentGateway:
    """Get payment gateway instance."""
    return PaymentGateway()
