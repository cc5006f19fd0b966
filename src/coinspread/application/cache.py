# src/coinspread/application/cache.py
"""
Result Cache - Per-kind TTL Cache with Request Coalescing

Each kind of computation (price lists, comparisons, premiums, ...) gets its
own cachetools TTLCache with its own TTL. Concurrent callers asking for the
same (kind, key) while it is being computed wait for that one computation
instead of starting their own, so a burst of identical requests costs one
round of exchange calls.

None results and empty collections are handed back but never stored, so a
momentary outage does not stick for a whole TTL.

Files that USE this module:
- coinspread.app (creates the cache from settings.cache_ttls)
- coinspread.application.price_service (wraps every public operation)
- coinspread.application.notifications (time-bucketed alert de-dup)
- tests.test_cache (unit tests)

Files that this module USES:
- cachetools (TTLCache)
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Mapping, Tuple, TypeVar

from cachetools import TTLCache

from coinspread.domain.models import AggregatedPriceSet

log = logging.getLogger(__name__)

T = TypeVar("T")


def _cacheable(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, AggregatedPriceSet):
        return not value.is_empty
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


class ResultCache:
    def __init__(
        self,
        ttls: Mapping[str, float],
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttls: TTL in seconds per computation kind
            maxsize: Maximum entries per kind
            timer: Clock used for expiry (injectable for tests)
        """
        self._lock = threading.Lock()
        self._caches: Dict[str, TTLCache] = {
            kind: TTLCache(maxsize=maxsize, ttl=ttl, timer=timer) for kind, ttl in ttls.items()
        }
        self._in_flight: Dict[Tuple[str, Hashable], Future] = {}

    def _cache(self, kind: str) -> TTLCache:
        try:
            return self._caches[kind]
        except KeyError:
            raise KeyError(f"Unknown cache kind: {kind!r}") from None

    @property
    def kinds(self) -> Tuple[str, ...]:
        return tuple(self._caches)

    def ttl(self, kind: str) -> float:
        return self._cache(kind).ttl

    def get(self, kind: str, key: Hashable, default: Any = None) -> Any:
        cache = self._cache(kind)
        with self._lock:
            return cache.get(key, default)

    def get_or_compute(self, kind: str, key: Hashable, fn: Callable[[], T]) -> T:
        """
        Return the cached value for (kind, key), computing it at most once.

        Exceptions from `fn` reach every waiting caller and nothing is cached.
        """
        cache = self._cache(kind)
        flight_key = (kind, key)
        with self._lock:
            try:
                value = cache[key]
            except KeyError:
                pass
            else:
                log.debug("Cache hit %s:%s", kind, key)
                return value
            flight = self._in_flight.get(flight_key)
            owner = flight is None
            if owner:
                flight = Future()
                self._in_flight[flight_key] = flight

        if not owner:
            log.debug("Joining in-flight computation %s:%s", kind, key)
            return flight.result()

        log.debug("Cache miss %s:%s", kind, key)
        try:
            value = fn()
        except BaseException as e:
            with self._lock:
                self._in_flight.pop(flight_key, None)
            flight.set_exception(e)
            raise

        with self._lock:
            if _cacheable(value):
                cache[key] = value
            self._in_flight.pop(flight_key, None)
        flight.set_result(value)
        return value

    def mark_once(self, kind: str, key: Hashable) -> bool:
        """
        Record `key` for the kind's TTL.

        Returns:
            True the first time within the TTL window, False afterwards
        """
        cache = self._cache(kind)
        with self._lock:
            if key in cache:
                return False
            cache[key] = time.time()
            return True

    def evict(self, kind: str, key: Hashable = None) -> None:
        """Drop one entry, or every entry of the kind when key is None."""
        cache = self._cache(kind)
        with self._lock:
            if key is None:
                cache.clear()
            else:
                cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def size(self, kind: str) -> int:
        cache = self._cache(kind)
        with self._lock:
            cache.expire()
            return len(cache)
