# tests/test_app.py
"""
Composition Root Tests - Engine Wiring from Settings

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- coinspread.app (build_sources, build_rate_provider, build_service)
- coinspread.config.settings (Settings)
"""
from decimal import Decimal  # Exact expected values
from unittest.mock import Mock  # Mock notifier

import pytest  # Testing framework for writing and running tests
from pydantic import ValidationError  # Settings validation failures

from coinspread.adapters.fx import RateProviderChain, StaticRateProvider
from coinspread.adapters.sources import BinanceSource, UpbitSource
from coinspread.app import build_rate_provider, build_service, build_sources
from coinspread.config.settings import Settings
from coinspread.domain.errors import ConfigurationError
from coinspread.domain.models import Region


class TestSettings:
    def test_enabled_sources_parsed_in_order(self):
        cfg = Settings(ENABLED_SOURCES="binance, upbit")

        assert cfg.enabled_source_names == ["BINANCE", "UPBIT"]

    def test_unknown_source_rejected(self):
        with pytest.raises(ValidationError):
            Settings(ENABLED_SOURCES="UPBIT,KRAKEN")

    def test_cache_ttls_cover_every_kind(self):
        ttls = Settings(PREMIUM_ALERT_DEDUP_MINUTES=5).cache_ttls

        assert ttls["premium_alert"] == 300
        assert {"prices", "comparison", "premium", "symbols", "top_coins"} <= set(ttls)


class TestBuildSources:
    def test_enabled_adapters_in_order(self):
        cfg = Settings(ENABLED_SOURCES="UPBIT,BINANCE", HTTP_TIMEOUT_SECONDS=7)

        sources = build_sources(cfg)

        assert [type(s) for s in sources] == [UpbitSource, BinanceSource]
        assert all(s.timeout == 7 for s in sources)


class TestBuildRateProvider:
    def test_static_without_key(self):
        fx = build_rate_provider(Settings(USD_KRW_RATE="1400", FASTFOREX_API_KEY=""))

        assert isinstance(fx, StaticRateProvider)
        assert fx.usd_krw_rate() == Decimal(1400)

    def test_chain_with_key(self):
        fx = build_rate_provider(Settings(FASTFOREX_API_KEY="abcdefghijkl"))

        assert isinstance(fx, RateProviderChain)
        assert isinstance(fx.fallback, StaticRateProvider)


class TestBuildService:
    def test_wires_engine_over_given_sources(self, fake_source):
        cfg = Settings(FASTFOREX_API_KEY="", USD_KRW_RATE="1350")
        sources = [
            fake_source("UPBIT", prices={"BTC": 100000}),
            fake_source("BINANCE", Region.FOREIGN, prices={"BTC": 70}),
        ]

        service = build_service(cfg, sources=sources, notifier=Mock())
        try:
            assert service.registry.names() == ["UPBIT", "BINANCE"]
            assert service.premium("BTC").premium_rate == Decimal("5.82")
        finally:
            service.close()

    def test_missing_preferred_source_raises(self, fake_source):
        cfg = Settings(PREFERRED_FOREIGN_SOURCE="BINANCE")

        with pytest.raises(ConfigurationError, match="PREFERRED_FOREIGN_SOURCE"):
            build_service(cfg, sources=[fake_source("UPBIT")])
