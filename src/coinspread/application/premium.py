# src/coinspread/application/premium.py
"""
Premium Calculator - Domestic vs Foreign Price Premium

Compares the highest domestic (KRW) price against the configured reference
foreign exchange after converting its USD price with the current USD/KRW
rate:

    premium_amount = domestic - foreign * rate
    premium_rate   = round(premium_amount / (foreign * rate), scale) * 100

Missing data (no domestic quotes, no reference quote, no FX rate) yields
None rather than an exception. A zero premium is a normal result.

Files that USE this module:
- coinspread.app (wires the calculator)
- coinspread.application.price_service (premium, all_premiums)
- tests.test_premium (unit tests)

Files that this module USES:
- coinspread.application.aggregation (AggregationContext)
- coinspread.adapters.fx.base (ExchangeRateProvider)
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.application.aggregation import AggregationContext
from coinspread.config import settings
from coinspread.domain.errors import ExchangeRateUnavailableError
from coinspread.domain.models import AggregatedPriceSet, PremiumResult
from coinspread.shared.validators import normalize_symbol

log = logging.getLogger(__name__)

HUNDRED = Decimal(100)


class PremiumCalculator:
    def __init__(
        self,
        context: AggregationContext,
        rate_provider: ExchangeRateProvider,
        preferred_foreign_source: Optional[str] = None,
        scale: Optional[int] = None,
    ):
        """
        Args:
            context: Fan-out context used to fetch quotes
            rate_provider: USD -> KRW rate source
            preferred_foreign_source: Reference foreign exchange (defaults to settings)
            scale: Decimal places of the premium ratio before the x100 (defaults to settings)
        """
        self.context = context
        self.rate_provider = rate_provider
        self.preferred_foreign_source = (
            preferred_foreign_source or settings.preferred_foreign_source
        ).strip().upper()
        self.scale = settings.premium_scale if scale is None else scale
        self._quantum = Decimal(1).scaleb(-self.scale)

    def calculate(self, symbol: str) -> Optional[PremiumResult]:
        """
        Fetch quotes and compute the premium for one symbol.

        Returns:
            PremiumResult, or None when the data is insufficient
        """
        sym = normalize_symbol(symbol)
        try:
            rate = self.rate_provider.usd_krw_rate()
        except ExchangeRateUnavailableError as e:
            log.warning("No USD/KRW rate for %s premium: %s", sym, e)
            return None

        # One fan-out covers both regions
        quotes = self.context.fetch_all(sym)
        return self.calculate_from(sym, quotes.domestic(), quotes.foreign(), rate)

    def calculate_from(
        self,
        symbol: str,
        domestic: AggregatedPriceSet,
        foreign: AggregatedPriceSet,
        rate: Decimal,
    ) -> Optional[PremiumResult]:
        """Compute the premium from already-fetched region sets (no I/O)."""
        if domestic.is_empty or foreign.is_empty:
            log.info(
                "Insufficient data for %s premium: %d domestic, %d foreign quotes",
                symbol, len(domestic), len(foreign),
            )
            return None

        reference = foreign.get(self.preferred_foreign_source)
        if reference is None:
            log.info(
                "Insufficient data for %s premium: reference source %s missing (have %s)",
                symbol, self.preferred_foreign_source, ", ".join(foreign.source_names),
            )
            return None

        if rate is None or rate <= 0:
            log.warning("Unusable USD/KRW rate for %s premium: %s", symbol, rate)
            return None

        converted = reference.current_price * rate
        if converted <= 0:
            log.info("Insufficient data for %s premium: reference price is zero", symbol)
            return None

        highest = domestic.quotes[0]
        lowest_price = domestic.quotes[-1].current_price
        lowest = next(q for q in domestic.quotes if q.current_price == lowest_price)

        amount = highest.current_price - converted
        premium_rate = (amount / converted).quantize(self._quantum, rounding=ROUND_HALF_UP) * HUNDRED

        result = PremiumResult(
            symbol=symbol,
            domestic_prices={q.source_name: q for q in domestic},
            foreign_prices={q.source_name: q for q in foreign},
            premium_rate=premium_rate,
            premium_amount=amount,
            base_foreign_source=reference.source_name,
            highest_domestic_source=highest.source_name,
            lowest_domestic_source=lowest.source_name,
            domestic_reference_price=highest.current_price,
            foreign_reference_price=reference.current_price,
            converted_foreign_price=converted,
            exchange_rate=rate,
        )
        log.info(
            "Premium %s: %s%% (%s %s vs %s %s x %s)",
            symbol, premium_rate, highest.source_name, highest.current_price,
            reference.source_name, reference.current_price, rate,
        )
        return result
