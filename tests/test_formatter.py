# tests/test_formatter.py
"""
Formatter Tests - Unit Tests for Message Formatting Functions

This module contains unit tests for the formatting helpers used by the
notifier and the start-up report: prices, percentages, premium and
comparison summaries, and the per-source health lines.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- coinspread.adapters.formatting.formatter (all formatter functions for testing)
- coinspread.application.comparison (builds ComparisonResult test data)
"""
import pytest  # Testing framework for writing and running tests

from decimal import Decimal  # Exact test values

from coinspread.adapters.formatting.formatter import (
    _fmt_pct,  # Format percentage change
    _fmt_price,  # Format price with currency
    format_comparison,  # Comparison summary
    format_health,  # Per-source health lines
    format_premium,  # Premium summary
)
from coinspread.application.comparison import compare
from coinspread.domain.models import AggregatedPriceSet, PremiumResult, Region


@pytest.fixture
def premium(quote):
    return PremiumResult(
        symbol="BTC",
        domestic_prices={"UPBIT": quote("UPBIT", 100000)},
        foreign_prices={"BINANCE": quote("BINANCE", 70, Region.FOREIGN)},
        premium_rate=Decimal("5.82"),
        premium_amount=Decimal(5500),
        base_foreign_source="BINANCE",
        highest_domestic_source="UPBIT",
        lowest_domestic_source="UPBIT",
        domestic_reference_price=Decimal(100000),
        foreign_reference_price=Decimal(70),
        converted_foreign_price=Decimal(94500),
        exchange_rate=Decimal(1350),
    )


class TestFmtPrice:
    def test_krw_has_no_decimals(self):
        assert _fmt_price(Decimal("95000000.4")) == "95,000,000 KRW"

    def test_usd_keeps_cents(self):
        assert _fmt_price(Decimal("70123.456"), "USD") == "70,123.46 USD"

    def test_none(self):
        assert _fmt_price(None) == "N/A"


class TestFmtPct:
    def test_positive(self):
        assert _fmt_pct(Decimal("5.82")) == "+5.82% 📈"

    def test_negative(self):
        assert _fmt_pct(Decimal("-1.2")) == "-1.20% 📉"

    def test_zero(self):
        assert _fmt_pct(Decimal(0)) == "0.00% ⏸"

    def test_none(self):
        assert _fmt_pct(None) == "—"


class TestFormatPremium:
    def test_format_premium(self, premium):
        result = format_premium(premium)

        expected_lines = [
            "🇰🇷 BTC premium: +5.82% 📈",
            "— Domestic (UPBIT): 100,000 KRW",
            "— Foreign (BINANCE): 70.00 USD ≈ 94,500 KRW",
            "— Difference: 5,500 KRW",
            "— USD/KRW: 1,350.00",
        ]
        assert result == "\n".join(expected_lines)

    def test_format_premium_none(self):
        assert format_premium(None) == "Premium: N/A (insufficient data)"


class TestFormatComparison:
    def test_format_comparison(self, quote):
        price_set = AggregatedPriceSet.build("BTC", [
            quote("UPBIT", 120, change_rate=Decimal("1.5")),
            quote("BITHUMB", 100),
        ])

        lines = format_comparison(compare(price_set)).split("\n")

        assert lines[0] == "📊 BTC across 2 exchanges (2 domestic, 0 foreign)"
        assert lines[1] == "— Upbit: 120 KRW +1.50% 📈"
        assert lines[2] == "— Bithumb: 100 KRW —"
        assert lines[3] == "High/Low: UPBIT 120 KRW / BITHUMB 100 KRW"
        assert lines[4] == "Spread: 20 KRW (20.00%)"
        assert lines[5] == "Avg/Median: 110 KRW / 110 KRW"

    def test_format_comparison_none(self):
        assert format_comparison(None) == "Comparison: N/A (no prices)"


class TestFormatHealth:
    def test_format_health(self):
        assert format_health({"UPBIT": True, "KORBIT": False}) == "✅ UPBIT\n❌ KORBIT"

    def test_format_health_empty(self):
        assert format_health({}) == "No sources registered"
