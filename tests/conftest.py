"""Pytest configuration and fixtures."""

import json
import os
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")

META_HOST = "graph.facebook.com"
UTMIFY_HOST = "api.utmify.com.br"
RATES_HOST = "economia.awesomeapi.com.br"


@dataclass
class FakeSinks:
    """Stand-in for the Meta, UTMify and exchange-rate endpoints.

    Records every request and answers with configurable status codes/bodies.
    """

    meta_status: int = 200
    utmify_status: int = 200
    rates_status: int = 200
    rates_body: Any = field(default_factory=lambda: {"EURBRL": {"bid": "6.0"}})
    fail_hosts: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.fail_hosts:
            raise httpx.ConnectError("connection refused", request=request)
        if host == META_HOST:
            return httpx.Response(self.meta_status, json={"events_received": 1})
        if host == UTMIFY_HOST:
            return httpx.Response(self.utmify_status, json={"OK": True})
        if host == RATES_HOST:
            if isinstance(self.rates_body, str):
                return httpx.Response(self.rates_status, text=self.rates_body)
            return httpx.Response(self.rates_status, json=self.rates_body)
        return httpx.Response(404, json={"error": "unknown host"})

    def to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def json_to(self, host: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.to(host)]

    @property
    def meta_requests(self) -> list[httpx.Request]:
        return self.to(META_HOST)

    @property
    def utmify_requests(self) -> list[httpx.Request]:
        return self.to(UTMIFY_HOST)

    @property
    def rate_requests(self) -> list[httpx.Request]:
        return self.to(RATES_HOST)

    @property
    def meta_payloads(self) -> list[dict[str, Any]]:
        return self.json_to(META_HOST)

    @property
    def utmify_payloads(self) -> list[dict[str, Any]]:
        return self.json_to(UTMIFY_HOST)

    def fail(self, *hosts: str) -> None:
        """Make requests to the named sinks ("meta", "utmify", "rates") fail at the network level."""
        names = {"meta": META_HOST, "utmify": UTMIFY_HOST, "rates": RATES_HOST}
        self.fail_hosts.update(names[h] for h in hosts)


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def sink_settings() -> Any:
    """Settings with both marketing sinks configured."""
    from src.core.config import Settings

    return Settings(
        supabase_url="https://test-project.supabase.co",
        supabase_secret_key="test-secret-key",
        stripe_secret_key="sk_test_stripe_secret_key",
        meta_pixel_id="1234567890",
        meta_capi_token="meta-token",
        utmify_api_token="utmify-token",
    )


@pytest.fixture
def fake_sinks() -> FakeSinks:
    """Provide fake marketing endpoints."""
    return FakeSinks()


@pytest.fixture
def http_client(fake_sinks: FakeSinks) -> httpx.AsyncClient:
    """Provide an httpx client routed to the fake endpoints."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_sinks.handler))


@pytest.fixture
def event_fanout(sink_settings: Any, http_client: httpx.AsyncClient) -> Any:
    """Provide an EventFanout wired to the fake endpoints."""
    from src.services.attribution_client import AttributionClient
    from src.services.conversions_client import ConversionsClient
    from src.services.event_fanout import EventFanout
    from src.services.exchange_rate_service import ExchangeRateService

    return EventFanout(
        conversions=ConversionsClient(http_client=http_client, settings=sink_settings),
        attribution=AttributionClient(http_client=http_client, settings=sink_settings),
        exchange_rates=ExchangeRateService(http_client=http_client),
        settings=sink_settings,
    )


@pytest.fixture
def mock_stripe() -> MagicMock:
    """Provide a Stripe module stand-in with async resource methods."""
    stripe_mock = MagicMock()
    stripe_mock.checkout.Session.create_async = AsyncMock()
    stripe_mock.checkout.Session.retrieve_async = AsyncMock()
    stripe_mock.PaymentIntent.retrieve_async = AsyncMock()
    return stripe_mock


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


def paid_session(**overrides: Any) -> dict[str, Any]:
    """Build an expanded, paid checkout session as Stripe returns it."""
    session = {
        "id": "cs_test_123",
        "object": "checkout.session",
        "payment_status": "paid",
        "amount_total": 5500,
        "currency": "eur",
        "created": 1767225600,
        "customer_email": None,
        "customer_details": {
            "name": "Maria Muster",
            "email": "Maria@Example.com",
            "phone": "+49 170 1234567",
        },
        "metadata": {
            "utm_source": "facebook",
            "utm_medium": "cpc",
            "utm_campaign": "spring",
            "utm_content": "",
            "utm_term": "",
        },
        "line_items": {
            "data": [
                {
                    "quantity": 1,
                    "amount_total": 2500,
                    "price": {
                        "unit_amount": 2500,
                        "product": {
                            "id": "prod_A",
                            "name": "Leinen Kissen",
                            "images": ["https://cdn.example.com/a.jpg"],
                            "metadata": {"sku": "SKU-A"},
                        },
                    },
                },
                {
                    "quantity": 2,
                    "amount_total": 3000,
                    "price": {
                        "unit_amount": 1500,
                        "product": {"id": "prod_B", "name": None, "images": [], "metadata": {}},
                    },
                },
            ]
        },
    }
    session.update(overrides)
    return session


@pytest.fixture
def make_session() -> Any:
    """Provide the paid checkout session builder."""
    return paid_session


@pytest.fixture
def mock_price_ledger() -> MagicMock:
    """Provide a price ledger stand-in returning two catalog SKUs."""
    from decimal import Decimal

    from src.api.middleware.error_handler import NotFoundError
    from src.models.product import PriceLedgerEntry

    entries = {
        "SKU-A": PriceLedgerEntry(sku="SKU-A", price=Decimal("24.99"), currency="eur", display_title="Leinen Kissen"),
        "SKU-B": PriceLedgerEntry(sku="SKU-B", price=Decimal("15.00"), currency="eur"),
    }

    async def lookup(sku: str) -> PriceLedgerEntry:
        if sku not in entries:
            raise NotFoundError(f"Product SKU not found: {sku}")
        return entries[sku]

    ledger = MagicMock()
    ledger.get = AsyncMock(side_effect=lookup)
    return ledger


@pytest.fixture
def checkout_service(mock_price_ledger: MagicMock, mock_stripe: MagicMock, event_fanout: Any) -> Any:
    """Provide a CheckoutService with Stripe mocked and sinks faked."""
    from src.services.checkout_service import CheckoutService
    from src.services.payment_gateway import PaymentGateway

    mock_stripe.checkout.Session.create_async.return_value = {
        "id": "cs_test_new",
        "client_secret": "cs_test_new_secret_abc",
    }
    return CheckoutService(
        price_ledger=mock_price_ledger,
        gateway=PaymentGateway(stripe_client=mock_stripe),
        fanout=event_fanout,
    )


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def checkout_client(checkout_service: Any) -> Generator[TestClient, None, None]:
    """Provide a test client whose checkout routes use the mocked service.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app
    from src.services.checkout_service import get_checkout_service

    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_checkout_service, None)
