# tests/test_comparison.py
"""
Comparison Engine Tests - Cross-exchange Statistics

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- coinspread.application.comparison (compare and helpers)
- coinspread.domain.models (AggregatedPriceSet)
"""
import pytest  # Testing framework for writing and running tests

from decimal import Decimal  # Exact expected values

from coinspread.application.comparison import compare, mean, median, population_std, spread_rate
from coinspread.domain.models import AggregatedPriceSet, Region


def _set(quote, *entries):
    return AggregatedPriceSet.build("BTC", [quote(name, price, region) for name, price, region in entries])


class TestCompare:
    def test_empty_set_gives_none(self):
        assert compare(AggregatedPriceSet.build("BTC", [])) is None

    def test_highest_and_lowest_come_from_the_set(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", 100, Region.DOMESTIC),
            ("BITHUMB", 130, Region.DOMESTIC),
            ("COINONE", 90, Region.DOMESTIC),
        )

        result = compare(price_set)

        assert result.highest.source_name == "BITHUMB"
        assert result.highest.price == Decimal(130)
        assert result.lowest.source_name == "COINONE"
        assert result.lowest.price == Decimal(90)
        assert result.highest.price >= result.lowest.price
        assert result.price_spread == Decimal(40)
        assert result.total_sources == 3

    def test_spread_rate_in_percent(self, quote):
        price_set = _set(quote, ("UPBIT", 120, Region.DOMESTIC), ("BITHUMB", 100, Region.DOMESTIC))

        result = compare(price_set)

        assert result.price_spread == Decimal(20)
        assert result.price_spread_rate == Decimal("20.00")

    def test_even_count_median_averages_middle_pair(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", 100, Region.DOMESTIC),
            ("BITHUMB", 200, Region.DOMESTIC),
            ("COINONE", 300, Region.DOMESTIC),
            ("KORBIT", 400, Region.DOMESTIC),
        )

        result = compare(price_set)

        assert result.median_price == Decimal("250.00")
        assert result.average_price == Decimal("250.00")
        assert result.standard_deviation == pytest.approx(111.8033988749895)

    def test_odd_count_median_is_central_value(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", 100, Region.DOMESTIC),
            ("BITHUMB", 200, Region.DOMESTIC),
            ("COINONE", 300, Region.DOMESTIC),
            ("KORBIT", 400, Region.DOMESTIC),
            ("BINANCE", 500, Region.FOREIGN),
        )

        result = compare(price_set)

        assert result.median_price == Decimal(300)
        assert result.average_price == Decimal("300.00")
        assert result.standard_deviation == pytest.approx(141.4213562373095)

    def test_single_source(self, quote):
        result = compare(_set(quote, ("UPBIT", 100, Region.DOMESTIC)))

        assert result.highest.source_name == result.lowest.source_name == "UPBIT"
        assert result.price_spread == Decimal(0)
        assert result.price_spread_rate == Decimal(0)
        assert result.standard_deviation == 0.0

    def test_ties_resolve_to_first_encountered(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", 100, Region.DOMESTIC),
            ("BITHUMB", 100, Region.DOMESTIC),
            ("COINONE", 90, Region.DOMESTIC),
            ("KORBIT", 90, Region.DOMESTIC),
        )

        result = compare(price_set)

        assert result.highest.source_name == "UPBIT"
        assert result.lowest.source_name == "COINONE"

    def test_region_counts(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", 100, Region.DOMESTIC),
            ("BITHUMB", 99, Region.DOMESTIC),
            ("BINANCE", 95, Region.FOREIGN),
        )

        result = compare(price_set)

        assert result.domestic_count == 2
        assert result.foreign_count == 1

    def test_zero_lowest_price_has_no_spread_rate(self, quote):
        result = compare(_set(quote, ("UPBIT", 100, Region.DOMESTIC), ("BITHUMB", 0, Region.DOMESTIC)))

        assert result.price_spread == Decimal(100)
        assert result.price_spread_rate is None

    def test_same_input_same_output(self, quote):
        price_set = _set(
            quote,
            ("UPBIT", "95000000", Region.DOMESTIC),
            ("BITHUMB", "95100000", Region.DOMESTIC),
            ("COINONE", "94900000.5", Region.DOMESTIC),
        )

        assert compare(price_set) == compare(price_set)


class TestStatistics:
    def test_mean_rounds_half_up(self):
        assert mean([Decimal("1.00"), Decimal("1.01")]) == Decimal("1.01")
        assert mean([Decimal("10"), Decimal("20"), Decimal("20")]) == Decimal("16.67")

    def test_median_odd_returns_central_value(self):
        assert median([Decimal(3), Decimal(1), Decimal(2)]) == Decimal(2)

    def test_median_even_rounds_half_up(self):
        assert median([Decimal("1.00"), Decimal("1.01")]) == Decimal("1.01")

    def test_population_std_divides_by_n(self):
        prices = [Decimal(2), Decimal(4), Decimal(4), Decimal(4), Decimal(5), Decimal(5), Decimal(7), Decimal(9)]
        assert population_std(prices, mean(prices)) == pytest.approx(2.0)

    def test_spread_rate_scale(self):
        # 1/3 -> 0.3333 -> 33.33%
        assert spread_rate(Decimal(1), Decimal(3)) == Decimal("33.33")
        assert spread_rate(Decimal(1), Decimal(0)) is None
