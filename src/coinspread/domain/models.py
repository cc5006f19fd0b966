# src/coinspread/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Per-exchange price quotes and quote failures
- Aggregated, sorted price sets
- Cross-exchange comparison results
- Domestic-vs-foreign premium results

All monetary values are Decimal. Fields an exchange did not report are None,
never zero, so consumers can tell "missing" apart from "zero".

Files that USE this module:
- coinspread.application.* (all services use domain models)
- coinspread.adapters.* (adapters create and use domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field, replace  # Immutable value objects
from datetime import datetime, timezone  # Timestamps for observations and results
from decimal import Decimal  # Exact arithmetic for prices
from enum import Enum  # Closed sets of regions and trading states
from typing import Dict, Iterable, Iterator, Optional, Tuple  # Type hints


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Region(str, Enum):
    """Which side of the premium an exchange sits on."""
    DOMESTIC = "DOMESTIC"
    FOREIGN = "FOREIGN"


class TradingStatus(str, Enum):
    """Trading state of a market as reported by its exchange."""
    NORMAL = "NORMAL"
    HALTED = "HALTED"
    DELISTED = "DELISTED"
    CAUTION = "CAUTION"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class PriceQuote:
    """
    One exchange's view of one coin at one instant.

    Attributes:
        symbol: Normalized ticker ('BTC')
        source_name: Registry name of the exchange ('UPBIT')
        region: DOMESTIC or FOREIGN
        current_price: Last trade price in `currency`
        currency: 'KRW' or 'USD'
        source_display_name: Human-readable exchange name
        high_24h / low_24h: 24h range; high >= current >= low is NOT guaranteed
        volume_24h: 24h traded quantity in coin units
        change_rate: 24h change in percent (e.g. Decimal('2.15'))
        trade_value_24h: 24h traded value in `currency`
        market_cap: Market capitalization in `currency` (aggregators only)
        status: Trading status
        observed_at: When the quote was parsed (UTC)
    """
    symbol: str
    source_name: str
    region: Region
    current_price: Decimal
    currency: str
    source_display_name: str = ""
    high_24h: Optional[Decimal] = None
    low_24h: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    change_rate: Optional[Decimal] = None
    trade_value_24h: Optional[Decimal] = None
    market_cap: Optional[Decimal] = None
    status: TradingStatus = TradingStatus.NORMAL
    observed_at: datetime = field(default_factory=_utcnow)

    def converted(self, rate: Decimal, currency: str) -> PriceQuote:
        """
        Return a copy with every monetary field multiplied by `rate`.

        Volume (coin units) and change rate (percent) are unchanged.
        """
        def _mul(value: Optional[Decimal]) -> Optional[Decimal]:
            return None if value is None else value * rate

        return replace(
            self,
            current_price=self.current_price * rate,
            high_24h=_mul(self.high_24h),
            low_24h=_mul(self.low_24h),
            trade_value_24h=_mul(self.trade_value_24h),
            market_cap=_mul(self.market_cap),
            currency=currency,
        )


@dataclass(frozen=True)
class QuoteFailure:
    """
    Returned by an adapter instead of raising.

    `not_found` is True when the exchange simply does not list the symbol.
    """
    source_name: str
    symbol: str
    reason: str
    not_found: bool = False


@dataclass(frozen=True)
class AggregatedPriceSet:
    """
    Quotes for one symbol from many exchanges.

    Quotes are sorted by current_price descending and each source appears at
    most once. Always construct through `build()`.
    """
    symbol: str
    quotes: Tuple[PriceQuote, ...] = ()
    queried: int = 0
    failed_sources: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        symbol: str,
        quotes: Iterable[PriceQuote],
        queried: Optional[int] = None,
        failed_sources: Iterable[str] = (),
    ) -> AggregatedPriceSet:
        """
        Deduplicate by source name (first occurrence wins) and sort by price.

        The sort is stable, so equal prices keep their input order.
        """
        seen = set()
        unique = []
        for quote in quotes:
            key = quote.source_name.upper()
            if key in seen:
                continue
            seen.add(key)
            unique.append(quote)
        unique.sort(key=lambda q: q.current_price, reverse=True)
        return cls(
            symbol=symbol,
            quotes=tuple(unique),
            queried=len(unique) if queried is None else queried,
            failed_sources=tuple(failed_sources),
        )

    def __len__(self) -> int:
        return len(self.quotes)

    def __iter__(self) -> Iterator[PriceQuote]:
        return iter(self.quotes)

    @property
    def is_empty(self) -> bool:
        return not self.quotes

    @property
    def source_names(self) -> Tuple[str, ...]:
        return tuple(q.source_name for q in self.quotes)

    def by_source(self) -> Dict[str, PriceQuote]:
        """Map upper-cased source name to its quote, in price order."""
        return {q.source_name.upper(): q for q in self.quotes}

    def get(self, source_name: str) -> Optional[PriceQuote]:
        return self.by_source().get(source_name.strip().upper())

    def in_region(self, region: Region) -> AggregatedPriceSet:
        return AggregatedPriceSet.build(
            self.symbol,
            [q for q in self.quotes if q.region == region],
            failed_sources=self.failed_sources,
        )

    def domestic(self) -> AggregatedPriceSet:
        return self.in_region(Region.DOMESTIC)

    def foreign(self) -> AggregatedPriceSet:
        return self.in_region(Region.FOREIGN)

    def converted(self, rate: Decimal, currency: str) -> AggregatedPriceSet:
        """
        Convert every quote not already in `currency` and re-sort.

        Used to put KRW and USD quotes on one scale before comparing them.
        """
        quotes = [
            q if q.currency == currency else q.converted(rate, currency)
            for q in self.quotes
        ]
        return AggregatedPriceSet.build(
            self.symbol, quotes, queried=self.queried, failed_sources=self.failed_sources
        )


@dataclass(frozen=True)
class SourcePrice:
    """The highest or lowest entry of a comparison."""
    source_name: str
    source_display_name: str
    region: Region
    price: Decimal
    change_rate: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> SourcePrice:
        return cls(
            source_name=quote.source_name,
            source_display_name=quote.source_display_name,
            region=quote.region,
            price=quote.current_price,
            change_rate=quote.change_rate,
            volume_24h=quote.volume_24h,
        )


@dataclass(frozen=True)
class ComparisonResult:
    """
    Cross-exchange statistics for one symbol.

    Attributes:
        price_spread: highest.price - lowest.price
        price_spread_rate: spread / lowest in percent, None when lowest is zero
        average_price: Mean, 2 decimal places, half-up
        median_price: Central value (mean of the two central values when even)
        standard_deviation: Population standard deviation
    """
    symbol: str
    currency: str
    total_sources: int
    domestic_count: int
    foreign_count: int
    quotes: Tuple[PriceQuote, ...]
    highest: SourcePrice
    lowest: SourcePrice
    price_spread: Decimal
    price_spread_rate: Optional[Decimal]
    average_price: Decimal
    median_price: Decimal
    standard_deviation: float


@dataclass(frozen=True)
class PremiumResult:
    """
    Domestic-vs-foreign premium for one symbol.

    Price maps hold quotes in their native currency, keyed by source name.

    Attributes:
        premium_amount: domestic_reference_price - converted_foreign_price (KRW)
        premium_rate: premium_amount / converted_foreign_price in percent
        exchange_rate: KRW per 1 USD used for the conversion
    """
    symbol: str
    domestic_prices: Dict[str, PriceQuote]
    foreign_prices: Dict[str, PriceQuote]
    premium_rate: Decimal
    premium_amount: Decimal
    base_foreign_source: str
    highest_domestic_source: str
    lowest_domestic_source: str
    domestic_reference_price: Decimal
    foreign_reference_price: Decimal
    converted_foreign_price: Decimal
    exchange_rate: Decimal
    computed_at: datetime = field(default_factory=_utcnow)

    @property
    def is_premium(self) -> bool:
        """True when domestic trades above foreign (positive premium)."""
        return self.premium_rate > 0
