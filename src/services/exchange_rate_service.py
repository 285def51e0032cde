"""Exchange rates for converting order amounts into the attribution currency."""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import httpx

from src.core.config import get_settings
from src.core.http_client import get_http_client

logger = logging.getLogger(__name__)


def convert_minor_amount(amount_minor: int, rate: Decimal) -> int:
    """Convert a minor-unit amount, rounding half up to a whole minor unit.

    Args:
        amount_minor: Amount in the source currency's minor unit.
        rate: Units of target currency per unit of source currency.

    Returns:
        int: Converted amount in the target currency's minor unit.
    """
    converted = Decimal(amount_minor) * Decimal(str(rate))
    return int(converted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ExchangeRateService:
    """Fetches spot rates, falling back to a configured rate on any failure.

    Failures here never abort the caller: an unreachable service, a non-2xx
    response or a malformed body all yield the fallback rate.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        fallback_rate: Decimal | None = None,
    ) -> None:
        settings = get_settings()
        self._http_client = http_client
        self.base_url = (base_url or settings.exchange_rate_url).rstrip("/")
        self.fallback_rate = Decimal(str(fallback_rate if fallback_rate is not None else settings.fallback_exchange_rate))

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = get_http_client()
        return self._http_client

    async def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Get the rate from one currency to another.

        Args:
            from_currency: Source ISO 4217 code (any case).
            to_currency: Target ISO 4217 code (any case).

        Returns:
            Decimal: Positive exchange rate, or the fallback rate.
        """
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return Decimal("1")

        url = f"{self.base_url}/{source}-{target}"
        try:
            response = await self.http.get(url)
            response.raise_for_status()
            body = response.json()
            rate = Decimal(str(body[f"{source}{target}"]["bid"]))
        except (httpx.HTTPError, ValueError, KeyError, TypeError, InvalidOperation) as e:
            logger.warning(
                "Exchange rate %s->%s unavailable, using fallback %s: %s",
                source,
                target,
                self.fallback_rate,
                str(e),
            )
            return self.fallback_rate

        if not rate.is_finite() or rate <= 0:
            logger.warning("Exchange rate %s->%s not positive (%s), using fallback", source, target, rate)
            return self.fallback_rate
        return rate
