# tests/conftest.py
"""
Shared Test Fixtures - In-memory Price Sources

Fake exchanges that extend the real PriceSource base class, so the fan-out,
premium and facade tests run against the same error handling and health
tracking the real adapters use, without any network access.

Files that USE this module:
- pytest (loads fixtures for every test module)

Files that this module USES:
- coinspread.adapters.sources.base (PriceSource)
- coinspread.domain.models (PriceQuote, Region)
"""
import threading  # Thread-safe call counting
import time  # Simulated slow exchanges
from decimal import Decimal  # Exact test prices

import pytest  # Testing framework for fixtures

from coinspread.adapters.sources.base import PriceSource
from coinspread.domain.errors import SymbolNotFoundError
from coinspread.domain.models import PriceQuote, Region


class FakeSource(PriceSource):
    """Exchange backed by a dict of prices."""

    def __init__(self, name, region=Region.DOMESTIC, prices=None, currency=None,
                 delay=0.0, error=None, ranking=None, **kwargs):
        self.name = name
        self.display_name = name.title()
        self.region = region
        self.currency = currency or ("KRW" if region == Region.DOMESTIC else "USD")
        self.prices = {k: Decimal(str(v)) for k, v in (prices or {}).items()}
        self.delay = delay
        self.error = error
        self.ranking = ranking
        self.calls = 0
        self._calls_lock = threading.Lock()
        super().__init__(**kwargs)

    def _default_base_url(self):
        return "http://fake.invalid"

    def _fetch_quote(self, symbol):
        with self._calls_lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if symbol not in self.prices:
            raise SymbolNotFoundError(f"{self.name} does not list {symbol}", self.name)
        return self._make_quote(symbol, self.prices[symbol])

    def _fetch_all(self):
        if self.error is not None:
            raise self.error
        return [self._make_quote(s, p) for s, p in self.prices.items()]

    def _fetch_top(self, limit):
        if self.ranking is not None:
            return [self._make_quote(s, self.prices.get(s, Decimal(1))) for s in self.ranking][:limit]
        return super()._fetch_top(limit)

    def _probe(self):
        return self.error is None


class ExplodingSource(FakeSource):
    """Breaks the adapter contract by raising straight out of quote()."""

    def quote(self, symbol):
        raise RuntimeError(f"{self.name} exploded")


def make_quote(source, price, region=Region.DOMESTIC, symbol="BTC", currency=None, **fields):
    """Build a PriceQuote for pure (no I/O) tests."""
    return PriceQuote(
        symbol=symbol,
        source_name=source,
        region=region,
        current_price=Decimal(str(price)),
        currency=currency or ("KRW" if region == Region.DOMESTIC else "USD"),
        source_display_name=source.title(),
        **fields,
    )


@pytest.fixture
def fake_source():
    """Factory for FakeSource instances."""
    return FakeSource


@pytest.fixture
def exploding_source():
    return ExplodingSource


@pytest.fixture
def quote():
    """Factory for PriceQuote values."""
    return make_quote
