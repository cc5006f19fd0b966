# tests/test_premium.py
"""
Premium Calculator Tests - Domestic vs Foreign Premium

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- coinspread.application.premium (PremiumCalculator)
- coinspread.adapters.fx.static (StaticRateProvider)
- unittest.mock (Mock for the context and FX provider)
"""
import pytest  # Testing framework for writing and running tests

from decimal import Decimal  # Exact expected values
from unittest.mock import Mock  # Mock collaborators

from coinspread.adapters.fx.static import StaticRateProvider
from coinspread.application.aggregation import AggregationContext
from coinspread.application.premium import PremiumCalculator
from coinspread.application.registry import SourceRegistry
from coinspread.domain.errors import ExchangeRateUnavailableError, SourceError
from coinspread.domain.models import AggregatedPriceSet, Region


def _domestic(quote, **prices):
    return AggregatedPriceSet.build("BTC", [quote(n, p, Region.DOMESTIC) for n, p in prices.items()])


def _foreign(quote, **prices):
    return AggregatedPriceSet.build("BTC", [quote(n, p, Region.FOREIGN) for n, p in prices.items()])


@pytest.fixture
def calculator():
    return PremiumCalculator(Mock(), StaticRateProvider("1350"), preferred_foreign_source="BINANCE", scale=4)


class TestCalculateFrom:
    def test_premium_amount_and_rate(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result.converted_foreign_price == Decimal(94500)
        assert result.premium_amount == Decimal(5500)
        assert result.premium_rate == Decimal("5.82")
        assert result.base_foreign_source == "BINANCE"
        assert result.exchange_rate == Decimal(1350)
        assert result.is_premium is True

    def test_zero_premium_is_a_result(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=94500), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result is not None
        assert result.premium_amount == Decimal(0)
        assert result.premium_rate == Decimal(0)

    def test_negative_premium(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=90000), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result.premium_amount == Decimal(-4500)
        assert result.premium_rate == Decimal("-4.76")
        assert result.is_premium is False

    def test_reference_is_highest_domestic(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC",
            _domestic(quote, UPBIT=100000, BITHUMB=101000, COINONE=99000),
            _foreign(quote, BINANCE=70, COINGECKO=71),
            Decimal(1350),
        )

        assert result.highest_domestic_source == "BITHUMB"
        assert result.lowest_domestic_source == "COINONE"
        assert result.domestic_reference_price == Decimal(101000)
        assert result.foreign_reference_price == Decimal(70)
        assert set(result.domestic_prices) == {"UPBIT", "BITHUMB", "COINONE"}
        assert set(result.foreign_prices) == {"BINANCE", "COINGECKO"}

    def test_missing_reference_source_gives_none(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), _foreign(quote, COINGECKO=70), Decimal(1350)
        )

        assert result is None

    def test_empty_domestic_gives_none(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", AggregatedPriceSet.build("BTC", []), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result is None

    def test_empty_foreign_gives_none(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), AggregatedPriceSet.build("BTC", []), Decimal(1350)
        )

        assert result is None

    def test_zero_foreign_price_gives_none(self, calculator, quote):
        result = calculator.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), _foreign(quote, BINANCE=0), Decimal(1350)
        )

        assert result is None

    def test_preferred_source_is_case_insensitive(self, quote):
        calc = PremiumCalculator(Mock(), StaticRateProvider("1350"), preferred_foreign_source="binance")

        result = calc.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result.base_foreign_source == "BINANCE"

    def test_scale_is_configurable(self, quote):
        calc = PremiumCalculator(Mock(), StaticRateProvider("1350"), preferred_foreign_source="BINANCE", scale=6)

        result = calc.calculate_from(
            "BTC", _domestic(quote, UPBIT=100000), _foreign(quote, BINANCE=70), Decimal(1350)
        )

        assert result.premium_rate == Decimal("5.8201")


class TestCalculate:
    def test_fetches_both_regions_and_uses_injected_rate(self, fake_source):
        registry = SourceRegistry([
            fake_source("UPBIT", prices={"BTC": 100000}),
            fake_source("BITHUMB", error=SourceError("down")),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 70}),
        ])
        with AggregationContext(registry, pool_size=3, task_timeout=2.0) as ctx:
            calc = PremiumCalculator(ctx, StaticRateProvider("1350"), preferred_foreign_source="BINANCE")
            result = calc.calculate("btc")

        assert result.symbol == "BTC"
        assert result.premium_rate == Decimal("5.82")
        assert set(result.domestic_prices) == {"UPBIT"}

    def test_refreshed_rate_is_used(self, fake_source):
        registry = SourceRegistry([
            fake_source("UPBIT", prices={"BTC": 100000}),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 70}),
        ])
        fx = StaticRateProvider("1350")
        with AggregationContext(registry, pool_size=2, task_timeout=2.0) as ctx:
            calc = PremiumCalculator(ctx, fx, preferred_foreign_source="BINANCE")
            fx.set_rate("1400")
            result = calc.calculate("BTC")

        assert result.exchange_rate == Decimal(1400)
        assert result.converted_foreign_price == Decimal(98000)

    def test_rate_unavailable_gives_none(self):
        context = Mock()
        fx = Mock()
        fx.usd_krw_rate.side_effect = ExchangeRateUnavailableError("feed down")
        calc = PremiumCalculator(context, fx, preferred_foreign_source="BINANCE")

        assert calc.calculate("BTC") is None
        context.fetch_all.assert_not_called()

    def test_preferred_source_down_gives_none(self, fake_source):
        registry = SourceRegistry([
            fake_source("UPBIT", prices={"BTC": 100000}),
            fake_source("BINANCE", Region.FOREIGN, error=SourceError("down")),
            fake_source("COINGECKO", Region.FOREIGN, prices={"BTC": 70}),
        ])
        with AggregationContext(registry, pool_size=3, task_timeout=2.0) as ctx:
            calc = PremiumCalculator(ctx, StaticRateProvider("1350"), preferred_foreign_source="BINANCE")
            assert calc.calculate("BTC") is None
