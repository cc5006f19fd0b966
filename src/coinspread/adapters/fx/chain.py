# src/coinspread/adapters/fx/chain.py
"""
FX Provider Chain - Primary/Fallback USD→KRW Rates

Tries the live feed first and falls back to the configured rate, tracking
which provider actually answered.
"""
import logging
from decimal import Decimal
from typing import Optional

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.domain.errors import ExchangeRateUnavailableError

log = logging.getLogger(__name__)


class RateProviderChain(ExchangeRateProvider):
    def __init__(self, primary: ExchangeRateProvider, fallback: ExchangeRateProvider):
        """
        Initialize provider chain with primary and fallback providers.

        Args:
            primary: Provider to try first (live feed)
            fallback: Provider used when the primary fails (configured rate)
        """
        self.primary = primary
        self.fallback = fallback
        self.last_used_provider: Optional[str] = None

    def usd_krw_rate(self) -> Decimal:
        """
        Get USD/KRW, trying the primary provider first, then the fallback.

        Raises:
            ExchangeRateUnavailableError: If both providers fail
        """
        try:
            rate = self.primary.usd_krw_rate()
            self.last_used_provider = type(self.primary).__name__
            return rate
        except ExchangeRateUnavailableError as e:
            log.warning("Primary FX provider failed, trying fallback: %s", e)
            try:
                rate = self.fallback.usd_krw_rate()
                self.last_used_provider = type(self.fallback).__name__
                return rate
            except ExchangeRateUnavailableError as e2:
                log.error("Both FX providers failed. Primary: %s, Fallback: %s", e, e2)
                raise ExchangeRateUnavailableError(
                    f"All FX providers failed: primary={e}, fallback={e2}"
                ) from e2

    def refresh(self) -> None:
        self.primary.refresh()
        self.fallback.refresh()

    def get_last_provider(self) -> Optional[str]:
        return self.last_used_provider
