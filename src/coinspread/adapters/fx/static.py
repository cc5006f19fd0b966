# src/coinspread/adapters/fx/static.py
"""
Static FX Rate Provider

Serves the USD_KRW_RATE from settings (or an injected value). The rate can
be replaced at runtime with set_rate(), e.g. from an operator command or a
scheduled job.
"""
import logging
import threading
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.config import settings
from coinspread.domain.errors import ExchangeRateUnavailableError

log = logging.getLogger(__name__)


class StaticRateProvider(ExchangeRateProvider):
    def __init__(self, rate: Optional[Union[Decimal, str, int]] = None):
        self._lock = threading.Lock()
        self._rate = self._validated(settings.usd_krw_rate if rate is None else rate)

    @staticmethod
    def _validated(rate: Union[Decimal, str, int]) -> Decimal:
        try:
            value = Decimal(str(rate))
        except InvalidOperation:
            raise ExchangeRateUnavailableError(f"USD/KRW rate is not a number: {rate!r}") from None
        if not value.is_finite() or value <= 0:
            raise ExchangeRateUnavailableError(f"USD/KRW rate must be positive, got {rate!r}")
        return value

    def usd_krw_rate(self) -> Decimal:
        with self._lock:
            return self._rate

    def set_rate(self, rate: Union[Decimal, str, int]) -> None:
        value = self._validated(rate)
        with self._lock:
            previous, self._rate = self._rate, value
        log.info("USD/KRW rate updated: %s -> %s", previous, value)
