# src/coinspread/adapters/sources/base.py
"""
Base Price Source - Contract and Shared Plumbing for Exchange Adapters

This module defines the abstract base class every exchange adapter extends.
Subclasses only implement the exchange-specific fetch/parse steps and may
raise SourceError freely; the public methods here catch everything, log it,
and hand back a QuoteFailure, an empty list or a fallback symbol set. Nothing
raised inside an adapter crosses this boundary.

The class also keeps a cheap, I/O-free health signal: an adapter turns
unhealthy after a run of consecutive failures and is retried once the
cooldown has passed (or immediately after any success).

Files that USE this module:
- coinspread.adapters.sources.* (every exchange adapter subclasses PriceSource)
- coinspread.application.registry (holds PriceSource instances)
- coinspread.application.aggregation (fans quote() out over PriceSource instances)
- tests.test_sources (unit tests)

Files that this module USES:
- coinspread.config (HTTP timeout, health thresholds)
- coinspread.domain.models (PriceQuote, QuoteFailure, Region)
- coinspread.domain.errors (SourceError, SymbolNotFoundError)
- coinspread.shared.validators (symbol normalization)
"""
from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple, Union

import requests

from coinspread.config import settings
from coinspread.domain.errors import SourceError, SymbolNotFoundError
from coinspread.domain.models import PriceQuote, QuoteFailure, Region, TradingStatus
from coinspread.shared.validators import normalize_symbol, validate_symbol

log = logging.getLogger(__name__)

QuoteOutcome = Union[PriceQuote, QuoteFailure]


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse an exchange numeric field.

    Exchanges send numbers as JSON numbers or strings, sometimes with
    thousands separators. Missing, blank or unparseable values return None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


class PriceSource(ABC):
    """
    One external exchange or market-data aggregator.

    Class attributes describe the source; subclasses set them.
    """

    name: str = ""
    display_name: str = ""
    region: Region = Region.DOMESTIC
    currency: str = "KRW"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        failure_threshold: Optional[int] = None,
        cooldown_seconds: Optional[float] = None,
        major_coins: Optional[Iterable[str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the adapter.

        Args:
            base_url: Optional API root (defaults to the exchange's URL in settings)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            failure_threshold: Consecutive failures before is_healthy() turns False
            cooldown_seconds: Seconds an unhealthy adapter is skipped before a retry
            major_coins: Fallback symbol list when the exchange cannot be asked
            clock: Monotonic clock, injectable for tests
        """
        self.base_url = (base_url or self._default_base_url()).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.failure_threshold = failure_threshold or settings.health_failure_threshold
        self.cooldown_seconds = (
            settings.health_cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        )
        self.major_coins: Tuple[str, ...] = tuple(
            major_coins if major_coins is not None else settings.major_coin_list
        )
        self._clock = clock
        self._health_lock = threading.Lock()
        self._consecutive_failures = 0
        self._last_failure_at: Optional[float] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, base_url={self.base_url!r})"

    # ------------------------------------------------------------------
    # Exchange-specific steps
    # ------------------------------------------------------------------

    @abstractmethod
    def _default_base_url(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def _fetch_quote(self, symbol: str) -> PriceQuote:
        """Fetch one normalized symbol. May raise SourceError / SymbolNotFoundError."""
        raise NotImplementedError

    @abstractmethod
    def _fetch_all(self) -> List[PriceQuote]:
        """Fetch every market the exchange lists in its native currency."""
        raise NotImplementedError

    @abstractmethod
    def _probe(self) -> bool:
        """Perform one real liveness request."""
        raise NotImplementedError

    def _fetch_supported(self) -> Set[str]:
        return {q.symbol for q in self._fetch_all()}

    def _fetch_top(self, limit: int) -> List[PriceQuote]:
        return self._rank(self._fetch_all())[:limit]

    def _rank(self, quotes: List[PriceQuote]) -> List[PriceQuote]:
        """Default ranking: 24h traded value, then volume, descending."""
        def key(q: PriceQuote):
            return (q.trade_value_24h or Decimal(0), q.volume_24h or Decimal(0))
        return sorted(quotes, key=key, reverse=True)

    # ------------------------------------------------------------------
    # Public contract (never raises)
    # ------------------------------------------------------------------

    def quote(self, symbol: str) -> QuoteOutcome:
        """
        Get the current quote for one symbol.

        Returns:
            PriceQuote on success, otherwise QuoteFailure (not_found=True when
            the exchange does not list the symbol)
        """
        sym = normalize_symbol(symbol)
        if not validate_symbol(sym):
            return QuoteFailure(self.name, symbol or "", "invalid symbol", not_found=True)

        try:
            result = self._fetch_quote(sym)
        except SymbolNotFoundError as e:
            # The exchange answered, so it is alive
            self._record_success()
            log.info("%s does not list %s: %s", self.name, sym, e)
            return QuoteFailure(self.name, sym, str(e), not_found=True)
        except SourceError as e:
            self._record_failure()
            log.warning("%s quote for %s failed: %s", self.name, sym, e)
            return QuoteFailure(self.name, sym, str(e))
        except Exception as e:
            self._record_failure()
            log.error("%s quote for %s raised unexpectedly: %s", self.name, sym, e, exc_info=True)
            return QuoteFailure(self.name, sym, f"unexpected error: {e}")

        self._record_success()
        return result

    def all_quotes(self) -> List[PriceQuote]:
        """Get quotes for every market on the exchange; empty list on failure."""
        return self._guarded("all_quotes", self._fetch_all, [])

    def top_by_ranking(self, limit: int = 10) -> List[PriceQuote]:
        """Get the exchange's top coins by its own ranking; empty list on failure."""
        if limit <= 0:
            return []
        return self._guarded("top_by_ranking", lambda: self._fetch_top(limit)[:limit], [])

    def supported_symbols(self) -> Set[str]:
        """Symbols the exchange lists; falls back to the major coins on failure."""
        symbols = self._guarded("supported_symbols", self._fetch_supported, None)
        if not symbols:
            return set(self.major_coins)
        return set(symbols)

    def is_healthy(self) -> bool:
        """
        Cheap liveness signal, no I/O.

        False after `failure_threshold` consecutive failures, until the
        cooldown elapses or a call succeeds.
        """
        with self._health_lock:
            if self._consecutive_failures < self.failure_threshold:
                return True
            if self._last_failure_at is None:
                return True
            return self._clock() - self._last_failure_at >= self.cooldown_seconds

    def probe(self) -> bool:
        """Real liveness request; updates the health signal."""
        try:
            ok = bool(self._probe())
        except Exception as e:
            log.warning("%s health probe failed: %s", self.name, e)
            ok = False
        if ok:
            self._record_success()
        else:
            self._record_failure()
        return ok

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _guarded(self, operation: str, fn: Callable[[], Any], default: Any) -> Any:
        try:
            result = fn()
        except SourceError as e:
            self._record_failure()
            log.warning("%s %s failed: %s", self.name, operation, e)
            return default
        except Exception as e:
            self._record_failure()
            log.error("%s %s raised unexpectedly: %s", self.name, operation, e, exc_info=True)
            return default
        self._record_success()
        return result

    def _record_success(self) -> None:
        with self._health_lock:
            self._consecutive_failures = 0
            self._last_failure_at = None

    def _record_failure(self) -> None:
        with self._health_lock:
            self._consecutive_failures += 1
            self._last_failure_at = self._clock()
            if self._consecutive_failures == self.failure_threshold:
                log.warning(
                    "%s marked unhealthy after %d consecutive failures",
                    self.name, self._consecutive_failures,
                )

    def _get_json(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        not_found_statuses: Tuple[int, ...] = (),
    ) -> Any:
        """
        GET `{base_url}{path}` and decode the JSON body.

        Raises:
            SymbolNotFoundError: If the HTTP status is one of `not_found_statuses`
            SourceError: On timeout, transport error, other HTTP error or invalid JSON
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout:
            raise SourceError(f"{self.name} API timeout after {self.timeout}s", self.name)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status is not None and status in not_found_statuses:
                raise SymbolNotFoundError(f"{self.name} API HTTP {status} for {path}", self.name) from e
            raise SourceError(f"{self.name} API HTTP error: {e}", self.name) from e
        except ValueError as e:
            raise SourceError(f"{self.name} API returned invalid JSON: {e}", self.name) from e
        except requests.exceptions.RequestException as e:
            raise SourceError(f"{self.name} API request failed: {e}", self.name) from e

    def _require_price(self, value: Any, symbol: str) -> Decimal:
        price = to_decimal(value)
        if price is None:
            raise SourceError(f"{self.name} response for {symbol} has no usable price: {value!r}", self.name)
        if price < 0:
            raise SourceError(f"{self.name} returned negative price for {symbol}: {price}", self.name)
        return price

    def _make_quote(
        self,
        symbol: str,
        current_price: Decimal,
        status: TradingStatus = TradingStatus.NORMAL,
        **fields: Any,
    ) -> PriceQuote:
        return PriceQuote(
            symbol=symbol,
            source_name=self.name,
            region=self.region,
            current_price=current_price,
            currency=self.currency,
            source_display_name=self.display_name,
            status=status,
            **fields,
        )
