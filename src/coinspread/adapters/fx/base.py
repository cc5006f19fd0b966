# src/coinspread/adapters/fx/base.py
"""
Base FX Rate Provider Interface

Defines the contract for USD -> KRW rate providers used by the premium
calculation and by mixed-currency price lists.

Files that USE this module:
- coinspread.adapters.fx.static (StaticRateProvider)
- coinspread.adapters.fx.fastforex (FastForexRateProvider)
- coinspread.adapters.fx.chain (RateProviderChain)
- coinspread.application.premium (depends on the interface only)
"""
from abc import ABC, abstractmethod
from decimal import Decimal


class ExchangeRateProvider(ABC):
    @abstractmethod
    def usd_krw_rate(self) -> Decimal:
        """
        Return KRW per 1 USD.

        Raises:
            ExchangeRateUnavailableError: If no usable rate is available
        """
        raise NotImplementedError

    def refresh(self) -> None:
        """Drop any cached rate so the next call fetches a fresh one."""
        return None
