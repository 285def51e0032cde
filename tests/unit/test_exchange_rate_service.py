"""Unit tests for exchange rate lookup and amount conversion."""

from decimal import Decimal
from typing import Any

import httpx
import pytest

from src.services.exchange_rate_service import ExchangeRateService, convert_minor_amount


class TestConvertMinorAmount:
    """Tests for convert_minor_amount."""

    def test_converts_with_rate(self) -> None:
        """Test that 10000 cents at 6.0 becomes 60000."""
        assert convert_minor_amount(10000, Decimal("6.0")) == 60000

    def test_rounds_half_up(self) -> None:
        """Test rounding to the nearest whole minor unit, halves up."""
        assert convert_minor_amount(1, Decimal("2.5")) == 3
        assert convert_minor_amount(3, Decimal("0.5")) == 2
        assert convert_minor_amount(100, Decimal("5.4321")) == 543

    def test_zero_amount(self) -> None:
        """Test that zero stays zero."""
        assert convert_minor_amount(0, Decimal("6.0")) == 0


class TestGetRate:
    """Tests for ExchangeRateService.get_rate."""

    @pytest.mark.asyncio
    async def test_reads_bid_from_pair_key(self, http_client: httpx.AsyncClient, fake_sinks: Any) -> None:
        """Test the request path and response shape."""
        fake_sinks.rates_body = {"EURBRL": {"bid": "5.8731"}}
        service = ExchangeRateService(http_client=http_client)

        rate = await service.get_rate("eur", "brl")

        assert rate == Decimal("5.8731")
        (request,) = fake_sinks.rate_requests
        assert request.url.path.endswith("/EUR-BRL")

    @pytest.mark.asyncio
    async def test_same_currency_skips_lookup(self, http_client: httpx.AsyncClient, fake_sinks: Any) -> None:
        """Test that identical currencies return 1 without a request."""
        service = ExchangeRateService(http_client=http_client)

        assert await service.get_rate("brl", "BRL") == Decimal("1")
        assert fake_sinks.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            {"USDBRL": {"bid": "5.0"}},
            {"EURBRL": {}},
            {"EURBRL": {"bid": "abc"}},
            {"EURBRL": {"bid": "0"}},
            {"EURBRL": {"bid": "-2"}},
        ],
    )
    async def test_malformed_body_uses_fallback(
        self, http_client: httpx.AsyncClient, fake_sinks: Any, body: object
    ) -> None:
        """Test that unusable bodies yield the fallback rate."""
        fake_sinks.rates_body = body
        service = ExchangeRateService(http_client=http_client, fallback_rate=Decimal("6.0"))

        assert await service.get_rate("EUR", "BRL") == Decimal("6.0")

    @pytest.mark.asyncio
    async def test_error_status_uses_fallback(self, http_client: httpx.AsyncClient, fake_sinks: Any) -> None:
        """Test that a non-2xx response yields the fallback rate."""
        fake_sinks.rates_status = 503
        service = ExchangeRateService(http_client=http_client, fallback_rate=Decimal("5.5"))

        assert await service.get_rate("EUR", "BRL") == Decimal("5.5")

    @pytest.mark.asyncio
    async def test_network_error_uses_fallback(self, http_client: httpx.AsyncClient, fake_sinks: Any) -> None:
        """Test that an unreachable service yields the fallback rate."""
        fake_sinks.fail("rates")
        service = ExchangeRateService(http_client=http_client)

        assert await service.get_rate("EUR", "BRL") == Decimal("6.0")
