# src/coinspread/adapters/fx/__init__.py
"""
FX Rate Adapters - USD→KRW Rate Providers

All providers implement ExchangeRateProvider.
"""

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.adapters.fx.chain import RateProviderChain
from coinspread.adapters.fx.fastforex import FastForexRateProvider
from coinspread.adapters.fx.static import StaticRateProvider

__all__ = [
    "ExchangeRateProvider",
    "FastForexRateProvider",
    "RateProviderChain",
    "StaticRateProvider",
]
