# src/coinspread/adapters/fx/fastforex.py
"""
FastForex API Provider for USD→KRW Exchange Rates

This module implements the FastForex API client for fetching the USD→KRW rate.
It caches the rate for FX_CACHE_MINUTES to reduce API calls and maps every
failure to ExchangeRateUnavailableError so a fallback provider can take over.

Files that USE this module:
- coinspread.app (chained in front of StaticRateProvider when a key is configured)
- tests.test_fx (unit tests)

Files that this module USES:
- coinspread.adapters.fx.base (ExchangeRateProvider interface)
- coinspread.config (settings for API configuration)
"""
import logging
import threading
import requests
from decimal import Decimal
from typing import Optional
from datetime import datetime, timedelta, timezone

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.adapters.sources.base import to_decimal
from coinspread.config import settings
from coinspread.domain.errors import ExchangeRateUnavailableError

log = logging.getLogger(__name__)


class FastForexRateProvider(ExchangeRateProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        cache_minutes: Optional[int] = None,
    ):
        """
        Initialize FastForex API provider.

        Args:
            api_key: Optional API key (defaults to settings.fastforex_key)
            base_url: Optional fetch-one endpoint (defaults to settings.fastforex_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            cache_minutes: Optional cache TTL (defaults to settings.fx_cache_minutes)

        Raises:
            ValueError: If no API key is configured
        """
        self.api_key = api_key if api_key is not None else settings.fastforex_key
        if not self.api_key:
            raise ValueError("FastForex API key not configured")
        self.url = base_url or settings.fastforex_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.ttl = timedelta(minutes=cache_minutes or settings.fx_cache_minutes)
        self._lock = threading.Lock()
        self._cache_rate: Optional[Decimal] = None
        self._cache_ts: Optional[datetime] = None

    def _cache_valid(self) -> bool:
        if self._cache_rate is None or self._cache_ts is None:
            return False
        return datetime.now(timezone.utc) - self._cache_ts < self.ttl

    def refresh(self) -> None:
        with self._lock:
            self._cache_rate = None
            self._cache_ts = None

    def usd_krw_rate(self) -> Decimal:
        """
        Get KRW per 1 USD from FastForex.

        Returns:
            KRW per 1 USD as Decimal

        Raises:
            ExchangeRateUnavailableError: If the request fails, returns invalid data,
                or the rate is non-positive
        """
        with self._lock:
            if self._cache_valid():
                log.debug("Using cached FastForex rate: %s", self._cache_rate)
                return self._cache_rate  # type: ignore[return-value]

        params = {"from": "USD", "to": "KRW", "api_key": self.api_key}
        try:
            log.info("Fetching fresh USD/KRW rate from FastForex")
            resp = requests.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout:
            log.warning("FastForex API timeout after %d seconds", self.timeout)
            raise ExchangeRateUnavailableError(f"FastForex API timeout after {self.timeout}s")
        except requests.exceptions.HTTPError as e:
            log.error("FastForex API HTTP error: %s", e)
            raise ExchangeRateUnavailableError(f"FastForex API HTTP error: {e}") from e
        except ValueError as e:
            log.error("FastForex API returned invalid JSON: %s", e)
            raise ExchangeRateUnavailableError(f"FastForex API returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            log.warning("FastForex API request failed: %s", e)
            raise ExchangeRateUnavailableError(f"FastForex API request failed: {e}") from e

        # Expect: {"base": "USD", "result": {"KRW": 1350.5}, ...}
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict) or "KRW" not in result:
            log.error("FastForex unexpected response structure: %s", data)
            raise ExchangeRateUnavailableError("FastForex response missing 'result.KRW' field")

        rate = to_decimal(result["KRW"])
        if rate is None or rate <= 0:
            log.error("FastForex returned unusable USD/KRW: %s", result["KRW"])
            raise ExchangeRateUnavailableError(f"FastForex returned unusable USD/KRW: {result['KRW']!r}")

        with self._lock:
            self._cache_rate = rate
            self._cache_ts = datetime.now(timezone.utc)

        log.info("FastForex updated: USD/KRW=%s (ttl=%s)", rate, self.ttl)
        return rate
