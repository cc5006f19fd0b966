# src/coinspread/adapters/sources/__init__.py
"""
Price Source Adapters - Exchange API Clients

This package contains adapters for external crypto exchanges and market-data
aggregators. All sources extend PriceSource and never raise from their
public methods.
"""

from coinspread.adapters.sources.base import PriceSource, QuoteOutcome, to_decimal
from coinspread.adapters.sources.binance import BinanceSource
from coinspread.adapters.sources.bithumb import BithumbSource
from coinspread.adapters.sources.coingecko import CoinGeckoSource
from coinspread.adapters.sources.coinone import CoinoneSource
from coinspread.adapters.sources.korbit import KorbitSource
from coinspread.adapters.sources.upbit import UpbitSource

# Registry name -> adapter class
SOURCE_CLASSES = {
    cls.name: cls
    for cls in (UpbitSource, BithumbSource, CoinoneSource, KorbitSource, BinanceSource, CoinGeckoSource)
}

__all__ = [
    "PriceSource",
    "QuoteOutcome",
    "to_decimal",
    "SOURCE_CLASSES",
    "BinanceSource",
    "BithumbSource",
    "CoinGeckoSource",
    "CoinoneSource",
    "KorbitSource",
    "UpbitSource",
]
