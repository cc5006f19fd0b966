# src/coinspread/application/comparison.py
"""
Comparison Engine - Cross-exchange Price Statistics

Pure function over an AggregatedPriceSet: no I/O, no shared state. The set
is already sorted by price descending, so highest is the first entry and
lowest is the first entry carrying the minimum price.

Files that USE this module:
- coinspread.application.price_service (compare)
- tests.test_comparison (unit tests)
"""
from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from coinspread.domain.models import AggregatedPriceSet, ComparisonResult, Region, SourcePrice

log = logging.getLogger(__name__)

CENTS = Decimal("0.01")
RATE_SCALE = Decimal("0.0001")
VARIANCE_SCALE = Decimal("0.0001")
HUNDRED = Decimal(100)


def mean(prices: List[Decimal]) -> Decimal:
    """Arithmetic mean at 2 decimal places, half-up."""
    return (sum(prices, Decimal(0)) / Decimal(len(prices))).quantize(CENTS, rounding=ROUND_HALF_UP)


def median(prices: List[Decimal]) -> Decimal:
    """Central value; mean of the two central values (2 dp, half-up) when even."""
    ordered = sorted(prices)
    n = len(ordered)
    mid = n // 2
    if n % 2:
        return ordered[mid]
    return ((ordered[mid - 1] + ordered[mid]) / Decimal(2)).quantize(CENTS, rounding=ROUND_HALF_UP)


def population_std(prices: List[Decimal], average: Decimal) -> float:
    """Population standard deviation (divide by N) around `average`."""
    variance = sum(((p - average) ** 2 for p in prices), Decimal(0)) / Decimal(len(prices))
    variance = variance.quantize(VARIANCE_SCALE, rounding=ROUND_HALF_UP)
    return math.sqrt(float(variance))


def spread_rate(spread: Decimal, lowest: Decimal) -> Optional[Decimal]:
    """spread / lowest at 4 decimal places (half-up), in percent; None if lowest is zero."""
    if lowest == 0:
        return None
    return (spread / lowest).quantize(RATE_SCALE, rounding=ROUND_HALF_UP) * HUNDRED


def compare(price_set: AggregatedPriceSet) -> Optional[ComparisonResult]:
    """
    Compute comparison statistics for a price set.

    Returns:
        ComparisonResult, or None if the set is empty
    """
    if price_set.is_empty:
        log.info("No prices to compare for %s", price_set.symbol)
        return None

    quotes = price_set.quotes
    prices = [q.current_price for q in quotes]
    lowest_price = prices[-1]
    highest = quotes[0]
    lowest = next(q for q in quotes if q.current_price == lowest_price)

    average = mean(prices)
    spread = highest.current_price - lowest.current_price
    currencies = {q.currency for q in quotes}
    if len(currencies) > 1:
        log.warning("Comparing %s across mixed currencies: %s", price_set.symbol, sorted(currencies))

    result = ComparisonResult(
        symbol=price_set.symbol,
        currency=quotes[0].currency if len(currencies) == 1 else "MIXED",
        total_sources=len(quotes),
        domestic_count=sum(1 for q in quotes if q.region == Region.DOMESTIC),
        foreign_count=sum(1 for q in quotes if q.region == Region.FOREIGN),
        quotes=quotes,
        highest=SourcePrice.from_quote(highest),
        lowest=SourcePrice.from_quote(lowest),
        price_spread=spread,
        price_spread_rate=spread_rate(spread, lowest.current_price),
        average_price=average,
        median_price=median(prices),
        standard_deviation=population_std(prices, average),
    )
    log.debug(
        "Compared %s over %d sources: high=%s (%s) low=%s (%s) spread=%s%%",
        result.symbol, result.total_sources,
        result.highest.price, result.highest.source_name,
        result.lowest.price, result.lowest.source_name,
        result.price_spread_rate,
    )
    return result
