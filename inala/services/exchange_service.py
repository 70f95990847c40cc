"""
inala/services/exchange_service.py

Purpose: Currency conversion for multi-currency tenants

- Static reference rates (units per 1 ZAR)
- Optional live refresh from a rates API
- Conversion and portfolio valuation
"""

import httpx
from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.core.config import settings
from inala.core.exceptions import ValidationError
from inala.core.logging import get_logger
from utils.constants import BASE_CURRENCY, REFERENCE_RATES_TO_ZAR
from utils.validation_utils import round_money, to_amount

logger = get_logger(__name__)


class ExchangeService:
    """
    Holds the current rate table. Starts from the reference rates and
    only replaces them when a refresh succeeds.
    """

    def __init__(self):
        self._rates: Dict[str, float] = dict(REFERENCE_RATES_TO_ZAR)
        self._updated_at: Optional[datetime] = None
        self._source = "static"

    def get_rates(self) -> Dict[str, Any]:
        return {
            "base": BASE_CURRENCY,
            "rates": dict(self._rates),
            "source": self._source,
            "updated_at": self._updated_at.isoformat() if self._updated_at else None,
        }

    def _rate(self, currency: str) -> float:
        code = (currency or "").upper()
        if code not in self._rates:
            raise ValidationError(f"Unsupported currency: {currency}", details={"currency": currency})
        return self._rates[code]

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        """
        Converts an amount between two supported currencies via ZAR.

        Raises:
            ValidationError: If either currency is unknown
        """
        from_rate = self._rate(from_currency)
        to_rate = self._rate(to_currency)
        return round_money(to_amount(amount) * to_rate / from_rate)

    def portfolio_value(self, holdings: List[Dict[str, Any]], to_currency: str = BASE_CURRENCY) -> Dict[str, Any]:
        """
        Values a list of {amount, currency} holdings in one currency.
        """
        total = 0.0
        breakdown: Dict[str, float] = {}

        for holding in holdings:
            currency = (holding.get("currency") or BASE_CURRENCY).upper()
            converted = self.convert(holding.get("amount", 0), currency, to_currency)
            breakdown[currency] = round_money(breakdown.get(currency, 0.0) + converted)
            total += converted

        return {
            "currency": to_currency.upper(),
            "total": round_money(total),
            "breakdown": breakdown,
        }

    async def refresh_rates(self) -> bool:
        """
        Pulls live rates (base ZAR) from EXCHANGE_RATE_API_URL.

        Only currencies already in the table are updated. On any failure
        the current table is kept.

        Returns:
            True if rates were refreshed
        """
        if not settings.EXCHANGE_RATE_API_URL:
            logger.debug("No exchange rate API configured, keeping static rates")
            return False

        try:
            async with httpx.AsyncClient(timeout=settings.EXCHANGE_RATE_TIMEOUT) as client:
                response = await client.get(settings.EXCHANGE_RATE_API_URL)

            if response.status_code != 200:
                logger.error(f"Exchange rate fetch failed: {response.status_code}")
                return False

            payload = response.json()
            live = payload.get("rates") or payload.get("conversion_rates") or {}

            updated = {
                code: float(live[code])
                for code in self._rates
                if code in live and to_amount(live[code]) > 0
            }
            if not updated:
                logger.warning("Exchange rate response had no usable rates")
                return False

            self._rates.update(updated)
            self._rates[BASE_CURRENCY] = 1.0
            self._updated_at = datetime.utcnow()
            self._source = "live"

            logger.info(f"Exchange rates refreshed for {len(updated)} currencies")
            return True

        except httpx.TimeoutException:
            logger.error("Exchange rate API timeout, keeping current rates")
            return False
        except (httpx.RequestError, ValueError) as e:
            logger.error(f"Exchange rate refresh failed: {e}")
            return False


# Singleton instance
exchange_service = ExchangeService()
