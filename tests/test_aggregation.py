# tests/test_aggregation.py
"""
Aggregation Context Tests - Concurrent Fan-out and Merge

Tests that failing, misbehaving and slow sources never break a fan-out,
that results are sorted and unique per source, and that the per-task
timeout is enforced.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- coinspread.application.aggregation (AggregationContext)
- tests.conftest (FakeSource / ExplodingSource fixtures)
"""
import time  # Measuring the timeout

from decimal import Decimal  # Exact expected prices

import pytest  # Testing framework for writing and running tests

from coinspread.application.aggregation import AggregationContext
from coinspread.application.registry import SourceRegistry
from coinspread.domain.errors import ConfigurationError, SourceError
from coinspread.domain.models import Region


def _context(sources, **kwargs):
    kwargs.setdefault("pool_size", 5)
    kwargs.setdefault("task_timeout", 2.0)
    kwargs.setdefault("skip_unhealthy", True)
    return AggregationContext(SourceRegistry(sources), **kwargs)


class TestFanOut:
    def test_failed_source_contributes_nothing(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", error=SourceError("down")),
            fake_source("COINONE", prices={"BTC": 110}),
        ]
        with _context(sources) as ctx:
            result = ctx.fetch_all("BTC")

        assert len(result) == 2
        assert result.queried == 3
        assert result.failed_sources == ("BITHUMB",)
        assert set(result.source_names) == {"UPBIT", "COINONE"}

    def test_sorted_descending_and_unique(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", prices={"BTC": 130}),
            fake_source("COINONE", prices={"BTC": 90}),
            fake_source("KORBIT", prices={"BTC": 120}),
        ]
        with _context(sources) as ctx:
            result = ctx.fetch_all("btc")

        prices = [q.current_price for q in result]
        assert prices == sorted(prices, reverse=True)
        assert prices == [Decimal(130), Decimal(120), Decimal(100), Decimal(90)]
        assert len(set(result.source_names)) == len(result)
        assert result.symbol == "BTC"

    def test_ties_keep_registry_order(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", prices={"BTC": 100}),
            fake_source("COINONE", prices={"BTC": 100}),
        ]
        with _context(sources) as ctx:
            for _ in range(5):
                assert ctx.fetch_all("BTC").source_names == ("UPBIT", "BITHUMB", "COINONE")

    def test_exception_escaping_adapter_is_contained(self, fake_source, exploding_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            exploding_source("BITHUMB"),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 70}),
        ]
        with _context(sources) as ctx:
            result = ctx.fetch_all("BTC")

        assert set(result.source_names) == {"UPBIT", "BINANCE"}
        assert "BITHUMB" in result.failed_sources

    def test_one_of_five_raising_every_call(self, fake_source, exploding_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", prices={"BTC": 104}),
            exploding_source("COINONE"),
            fake_source("KORBIT", prices={"BTC": 98}),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 101}),
        ]
        with _context(sources) as ctx:
            for _ in range(3):
                result = ctx.fetch_all("BTC")

                assert len(result) == 4
                assert result.failed_sources == ("COINONE",)
                prices = [q.current_price for q in result]
                assert prices == sorted(prices, reverse=True)
                assert len(set(result.source_names)) == len(result)

    def test_all_sources_failing_gives_empty_set(self, fake_source):
        sources = [
            fake_source("UPBIT", error=SourceError("down")),
            fake_source("BITHUMB", error=SourceError("down")),
        ]
        with _context(sources) as ctx:
            result = ctx.fetch_all("BTC")

        assert result.is_empty
        assert len(result) == 0

    def test_not_listed_symbol_is_not_a_failure(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", prices={"ETH": 5}),
        ]
        with _context(sources) as ctx:
            result = ctx.fetch_all("BTC")

        assert result.source_names == ("UPBIT",)
        assert result.failed_sources == ()

    def test_slow_source_is_dropped_at_timeout(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}),
            fake_source("BITHUMB", prices={"BTC": 200}, delay=1.5),
        ]
        ctx = _context(sources, task_timeout=0.2)
        try:
            started = time.monotonic()
            result = ctx.fetch_all("BTC")
            elapsed = time.monotonic() - started
        finally:
            ctx.close()

        assert result.source_names == ("UPBIT",)
        assert "BITHUMB" in result.failed_sources
        assert elapsed < 1.0

    def test_queue_time_is_not_charged_to_the_timeout(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}, delay=0.4),
            fake_source("BITHUMB", prices={"BTC": 101}, delay=0.4),
        ]
        # One worker: BITHUMB waits 0.4s in the queue, then runs 0.4s
        with _context(sources, pool_size=1, task_timeout=0.7) as ctx:
            result = ctx.fetch_all("BTC")

        assert result.source_names == ("BITHUMB", "UPBIT")
        assert result.failed_sources == ()

    def test_task_stuck_in_queue_is_dropped(self, fake_source):
        sources = [
            fake_source("UPBIT", prices={"BTC": 100}, delay=1.0),
            fake_source("BITHUMB", prices={"BTC": 101}),
        ]
        ctx = _context(sources, pool_size=1, task_timeout=0.3)
        try:
            started = time.monotonic()
            result = ctx.fetch_all("BTC")
            elapsed = time.monotonic() - started
        finally:
            ctx.close()

        assert result.is_empty
        assert set(result.failed_sources) == {"UPBIT", "BITHUMB"}
        assert elapsed < 0.9

    def test_unhealthy_source_is_skipped(self, fake_source):
        broken = fake_source("BITHUMB", error=SourceError("down"), failure_threshold=1, cooldown_seconds=600)
        sources = [fake_source("UPBIT", prices={"BTC": 100}), broken]
        with _context(sources) as ctx:
            ctx.fetch_all("BTC")
            calls_before = broken.calls
            result = ctx.fetch_all("BTC")

        assert broken.calls == calls_before
        assert result.queried == 1

    def test_unhealthy_source_is_asked_when_skipping_disabled(self, fake_source):
        broken = fake_source("BITHUMB", error=SourceError("down"), failure_threshold=1, cooldown_seconds=600)
        sources = [fake_source("UPBIT", prices={"BTC": 100}), broken]
        with _context(sources, skip_unhealthy=False) as ctx:
            ctx.fetch_all("BTC")
            ctx.fetch_all("BTC")

        assert broken.calls == 2


class TestSubsets:
    @pytest.fixture
    def sources(self, fake_source):
        return [
            fake_source("UPBIT", prices={"BTC": 100000}),
            fake_source("BITHUMB", prices={"BTC": 99000}),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 70}),
        ]

    def test_fetch_region(self, sources):
        with _context(sources) as ctx:
            domestic = ctx.fetch_region("BTC", Region.DOMESTIC)
            foreign = ctx.fetch_region("BTC", Region.FOREIGN)

        assert domestic.source_names == ("UPBIT", "BITHUMB")
        assert foreign.source_names == ("BINANCE",)

    def test_fetch_source_case_insensitive(self, sources):
        with _context(sources) as ctx:
            result = ctx.fetch_source("BTC", "binance")

        assert result.source_names == ("BINANCE",)
        assert result.quotes[0].currency == "USD"

    def test_fetch_source_unknown_raises(self, sources):
        with _context(sources) as ctx:
            with pytest.raises(ConfigurationError):
                ctx.fetch_source("BTC", "KRAKEN")

    def test_gather_runs_function_per_source(self, sources):
        with _context(sources) as ctx:
            results = ctx.gather(sources, lambda s: s.name.lower())

        assert [value for _, value in results] == ["upbit", "bithumb", "binance"]

    def test_gather_drops_raising_sources(self, sources):
        def fn(source):
            if source.name == "BITHUMB":
                raise RuntimeError("boom")
            return source.name

        with _context(sources) as ctx:
            results = ctx.gather(sources, fn)

        assert [value for _, value in results] == ["UPBIT", "BINANCE"]
