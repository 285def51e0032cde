"""Stripe SDK configuration."""

import logging

import stripe

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def configure_stripe() -> None:
    """Apply the secret key and SDK options once at startup.

    Network retries are turned off: a failed session lookup surfaces to the
    storefront as an upstream error instead of stalling the request.
    """
    settings = get_settings()
    stripe.max_network_retries = 0
    stripe.set_app_info(settings.app_name)

    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY not set; checkout and order lookups will fail")
        return

    stripe.api_key = settings.stripe_secret_key
    logger.info("Stripe configured in %s mode", "test" if settings.is_stripe_test_mode else "live")


def get_stripe() -> stripe:
    """Return the module-level configured Stripe SDK."""
    return stripe
