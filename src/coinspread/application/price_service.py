# src/coinspread/application/price_service.py
"""
Price Service - Public Facade of the Aggregation Engine

This module contains the high-level operations callers use: price lists,
cross-exchange comparisons, premiums, symbol lists, rankings and health.
Every read goes through the result cache, so repeated requests within a TTL
cost no exchange calls, and identical concurrent requests share one
computation.

Mixed-region price lists are converted to KRW with the current USD/KRW rate
before sorting, so a comparison over all exchanges compares like with like.
Lists restricted to one region or one source stay in native currency.

Files that USE this module:
- coinspread.app (build_service returns a PriceService)
- tests.test_price_service (unit tests)

Files that this module USES:
- coinspread.application.aggregation (AggregationContext fan-out)
- coinspread.application.comparison (compare)
- coinspread.application.premium (PremiumCalculator)
- coinspread.application.cache (ResultCache)
- coinspread.application.notifications (NotificationDispatcher)
- coinspread.adapters.fx.base (ExchangeRateProvider)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging  # Standard library logging
from decimal import Decimal  # Exact FX arithmetic
from typing import Dict, Iterable, List, Optional, Set, Union  # Type hints

from coinspread.adapters.formatting.formatter import format_comparison  # Comparison log text
from coinspread.adapters.fx.base import ExchangeRateProvider  # USD -> KRW rate source
from coinspread.application.aggregation import AggregationContext  # Concurrent fan-out
from coinspread.application.cache import ResultCache  # Per-kind TTL cache
from coinspread.application.comparison import compare  # Cross-exchange statistics
from coinspread.application.notifications import NotificationDispatcher  # Premium hand-off
from coinspread.application.premium import PremiumCalculator  # Premium math
from coinspread.application.registry import SourceRegistry  # Source lookup
from coinspread.config import settings  # Major coins, ranking defaults
from coinspread.domain.errors import ConfigurationError, ExchangeRateUnavailableError
from coinspread.domain.models import (
    AggregatedPriceSet,
    ComparisonResult,
    PremiumResult,
    PriceQuote,
    Region,
)
from coinspread.shared.validators import normalize_symbol  # Cache-key normalization

log = logging.getLogger(__name__)

DOMESTIC_CURRENCY = "KRW"
RANKING_SOURCE = "COINGECKO"


class PriceService:
    """
    Facade over registry, fan-out, comparison, premium and cache.

    All methods are safe to call from many threads.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        context: AggregationContext,
        calculator: PremiumCalculator,
        cache: ResultCache,
        rate_provider: ExchangeRateProvider,
        dispatcher: Optional[NotificationDispatcher] = None,
        major_coins: Optional[Iterable[str]] = None,
        ranking_source: str = RANKING_SOURCE,
    ):
        self.registry = registry
        self.context = context
        self.calculator = calculator
        self.cache = cache
        self.rate_provider = rate_provider
        self.dispatcher = dispatcher
        self.major_coins: List[str] = [
            normalize_symbol(s) for s in (major_coins if major_coins is not None else settings.major_coin_list)
        ]
        self.ranking_source = ranking_source.upper()

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def list_prices(
        self,
        symbol: str,
        region: Optional[Union[Region, str]] = None,
        source: Optional[str] = None,
    ) -> AggregatedPriceSet:
        """
        Unified price list for a symbol.

        Args:
            symbol: Coin symbol ('BTC', 'krw-btc', ...)
            region: Restrict to DOMESTIC or FOREIGN sources (native currency)
            source: Restrict to one named source (native currency)

        Returns:
            AggregatedPriceSet sorted by price descending (may be empty)

        Raises:
            ConfigurationError: If `source` or `region` is unknown
        """
        sym = normalize_symbol(symbol)
        if source is not None:
            name = self.registry.require(source).name
            return self.cache.get_or_compute(
                "source_quotes", (name, sym), lambda: self.context.fetch_source(sym, name)
            )
        if region is not None:
            reg = self._region(region)
            return self.cache.get_or_compute(
                "prices", (sym, reg.value), lambda: self.context.fetch_region(sym, reg)
            )
        return self.cache.get_or_compute(
            "prices", (sym, "ALL"), lambda: self._in_domestic_currency(self.context.fetch_all(sym))
        )

    def all_coin_prices(self, source: str) -> List[PriceQuote]:
        """
        Every market one exchange lists, in its native currency.

        Raises:
            ConfigurationError: If `source` is not registered
        """
        src = self.registry.require(source)
        return list(self.cache.get_or_compute("source_quotes", (src.name, "*"), src.all_quotes))

    # ------------------------------------------------------------------
    # Comparison & premium
    # ------------------------------------------------------------------

    def compare(self, symbol: str) -> Optional[ComparisonResult]:
        """Cross-exchange statistics over the KRW-normalized list; None if no prices."""
        sym = normalize_symbol(symbol)
        return self.cache.get_or_compute("comparison", sym, lambda: self._compute_comparison(sym))

    def premium(self, symbol: str) -> Optional[PremiumResult]:
        """Domestic-vs-foreign premium; None when data is insufficient."""
        sym = normalize_symbol(symbol)
        return self.cache.get_or_compute("premium", sym, lambda: self._compute_premium(sym))

    def all_premiums(self, symbols: Optional[Iterable[str]] = None) -> List[PremiumResult]:
        """
        Premiums for several symbols (major coins by default), highest first.

        Symbols without enough data are left out.
        """
        wanted = tuple(normalize_symbol(s) for s in symbols) if symbols is not None else tuple(self.major_coins)

        def _compute() -> List[PremiumResult]:
            results = [r for r in (self.premium(s) for s in wanted) if r is not None]
            results.sort(key=lambda r: r.premium_rate, reverse=True)
            return results

        return list(self.cache.get_or_compute("premium_list", wanted, _compute))

    def evict_premium_caches(self) -> None:
        self.cache.evict("premium")
        self.cache.evict("premium_list")
        log.info("Premium caches evicted")

    def refresh_exchange_rate(self) -> None:
        """Refetch the FX rate and drop every cached value derived from it."""
        self.rate_provider.refresh()
        self.evict_premium_caches()
        self.cache.evict("prices")
        self.cache.evict("comparison")

    # ------------------------------------------------------------------
    # Symbols, rankings, health
    # ------------------------------------------------------------------

    def supported_symbols(self) -> Set[str]:
        """Union of the symbols every registered source lists."""
        def _compute() -> frozenset:
            answers = self.context.gather(self.registry.all(), lambda s: s.supported_symbols())
            union: Set[str] = set()
            for _, symbols in answers:
                union.update(symbols)
            return frozenset(union)

        return set(self.cache.get_or_compute("symbols", "ALL", _compute))

    def top_coins(self, limit: int = 10) -> List[PriceQuote]:
        """
        Top coins by market cap.

        Asks the market-data aggregator first, then the other healthy sources
        in registry order; the first non-empty answer wins.
        """
        if limit <= 0:
            return []

        def _compute() -> List[PriceQuote]:
            preferred = self.registry.get(self.ranking_source)
            candidates = [preferred] if preferred is not None else []
            candidates += [s for s in self.registry.healthy() if s is not preferred]
            for source in candidates:
                quotes = source.top_by_ranking(limit)
                if quotes:
                    log.info("Top %d coins served by %s", limit, source.name)
                    return quotes[:limit]
                log.info("%s returned no ranking, trying next source", source.name)
            return []

        return list(self.cache.get_or_compute("top_coins", limit, _compute))

    def source_health(self) -> Dict[str, bool]:
        """Cheap health map: source name -> is_healthy()."""
        return {source.name: source.is_healthy() for source in self.registry}

    def close(self) -> None:
        self.context.close()
        if self.dispatcher is not None:
            self.dispatcher.close()

    # ------------------------------------------------------------------

    def _compute_comparison(self, symbol: str) -> Optional[ComparisonResult]:
        result = compare(self.list_prices(symbol))
        if result is not None:
            log.info("Comparison computed\n%s", format_comparison(result))
        return result

    def _compute_premium(self, symbol: str) -> Optional[PremiumResult]:
        result = self.calculator.calculate(symbol)
        if result is not None and self.dispatcher is not None:
            self.dispatcher.submit(result)
        return result

    def _in_domestic_currency(self, price_set: AggregatedPriceSet) -> AggregatedPriceSet:
        if all(q.currency == DOMESTIC_CURRENCY for q in price_set):
            return price_set
        rate = self._usd_krw()
        if rate is None:
            # Without a rate foreign quotes cannot be compared; keep the KRW ones
            log.warning("No USD/KRW rate; dropping foreign quotes from %s list", price_set.symbol)
            return AggregatedPriceSet.build(
                price_set.symbol,
                [q for q in price_set if q.currency == DOMESTIC_CURRENCY],
                queried=price_set.queried,
                failed_sources=price_set.failed_sources,
            )
        return price_set.converted(rate, DOMESTIC_CURRENCY)

    def _usd_krw(self) -> Optional[Decimal]:
        try:
            return self.rate_provider.usd_krw_rate()
        except ExchangeRateUnavailableError as e:
            log.warning("USD/KRW rate unavailable: %s", e)
            return None

    @staticmethod
    def _region(region: Union[Region, str]) -> Region:
        if isinstance(region, Region):
            return region
        try:
            return Region(str(region).strip().upper())
        except ValueError:
            raise ConfigurationError(f"Unknown region {region!r}") from None
