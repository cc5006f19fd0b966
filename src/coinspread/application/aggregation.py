# src/coinspread/application/aggregation.py
"""
Aggregation Context - Concurrent Fan-out of Quote Requests

Sends one quote request per selected source to a shared, bounded thread
pool, waits for all of them up to an explicit per-task timeout, and merges
whatever came back into an AggregatedPriceSet. A source that errors, reports
a failure or misses the deadline contributes nothing; the call still
succeeds with the remaining quotes (possibly none).

Results are collected in submission (registry) order before the price sort,
so ties between sources always resolve the same way.

The per-task clock starts when a worker picks the task up, so time spent
queued behind other requests in the shared pool is not charged to a source.
A task still queued `task_timeout` seconds after submission is dropped too.

Files that USE this module:
- coinspread.app (creates the shared context)
- coinspread.application.premium (region sets for the premium)
- coinspread.application.price_service (price lists)
- tests.test_aggregation (unit tests)

Files that this module USES:
- coinspread.application.registry (SourceRegistry)
- coinspread.domain.models (AggregatedPriceSet, PriceQuote, QuoteFailure)
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from coinspread.adapters.sources.base import PriceSource, QuoteOutcome
from coinspread.application.registry import SourceRegistry
from coinspread.config import settings
from coinspread.domain.models import AggregatedPriceSet, PriceQuote, QuoteFailure, Region
from coinspread.shared.validators import normalize_symbol

log = logging.getLogger(__name__)

T = TypeVar("T")


def _safe_quote(source: PriceSource, symbol: str) -> QuoteOutcome:
    """Run one adapter call; nothing raised by the adapter escapes the worker."""
    try:
        return source.quote(symbol)
    except Exception as e:
        return QuoteFailure(source.name, symbol, f"unexpected error: {e}")


class _Task:
    """One submitted call plus the moment a worker started running it."""

    def __init__(self, source: PriceSource, fn: Callable[[], Any], submitted_at: float):
        self.source = source
        self.submitted_at = submitted_at
        self.started_at: Optional[float] = None
        self._fn = fn
        self.future: Optional[Future] = None

    def run(self) -> Any:
        self.started_at = time.monotonic()
        return self._fn()

    def deadline(self, timeout: float) -> float:
        started_at = self.started_at
        return (self.submitted_at if started_at is None else started_at) + timeout


class AggregationContext:
    """Shared worker pool plus the fan-out/merge logic."""

    def __init__(
        self,
        registry: SourceRegistry,
        pool_size: Optional[int] = None,
        task_timeout: Optional[float] = None,
        skip_unhealthy: Optional[bool] = None,
    ):
        """
        Args:
            registry: Sources available for fan-out
            pool_size: Worker threads (defaults to settings.aggregation_pool_size)
            task_timeout: Seconds each task may run once a worker starts it
                (defaults to settings.source_timeout_seconds)
            skip_unhealthy: Leave out sources whose is_healthy() is False
        """
        self.registry = registry
        self.pool_size = pool_size or settings.aggregation_pool_size
        self.task_timeout = task_timeout if task_timeout is not None else settings.source_timeout_seconds
        self.skip_unhealthy = settings.skip_unhealthy_sources if skip_unhealthy is None else skip_unhealthy
        self._executor = ThreadPoolExecutor(
            max_workers=self.pool_size, thread_name_prefix="price-source"
        )

    def __enter__(self) -> AggregationContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------

    def fetch_all(self, symbol: str) -> AggregatedPriceSet:
        return self.fetch(symbol, self.registry.all())

    def fetch_region(self, symbol: str, region: Region) -> AggregatedPriceSet:
        return self.fetch(symbol, self.registry.by_region(region))

    def fetch_source(self, symbol: str, name: str) -> AggregatedPriceSet:
        """
        Query one named source.

        Raises:
            ConfigurationError: If the name is not registered
        """
        # A single named source is asked even when flagged unhealthy
        return self.fetch(symbol, [self.registry.require(name)], skip_unhealthy=False)

    def fetch(
        self,
        symbol: str,
        sources: Iterable[PriceSource],
        skip_unhealthy: Optional[bool] = None,
    ) -> AggregatedPriceSet:
        """
        Fan `quote(symbol)` out over `sources` and merge the answers.

        Returns:
            AggregatedPriceSet sorted by price descending; empty if nothing answered
        """
        sym = normalize_symbol(symbol)
        selected = list(sources)
        if self.skip_unhealthy if skip_unhealthy is None else skip_unhealthy:
            healthy = self.registry.healthy(selected)
            skipped = [s.name for s in selected if s not in healthy]
            if skipped:
                log.info("Skipping unhealthy sources for %s: %s", sym, ", ".join(skipped))
            selected = healthy

        if not selected:
            log.warning("No sources available for %s", sym)
            return AggregatedPriceSet.build(sym, [], queried=0)

        tasks = self._run(selected, lambda source: _safe_quote(source, sym))
        quotes, failed = self._collect(sym, tasks, self._await(tasks))
        result = AggregatedPriceSet.build(sym, quotes, queried=len(selected), failed_sources=failed)
        log.info(
            "Aggregated %s: %d/%d sources answered%s",
            sym, len(result), len(selected),
            f" (failed: {', '.join(failed)})" if failed else "",
        )
        return result

    def gather(
        self,
        sources: Iterable[PriceSource],
        fn: Callable[[PriceSource], T],
    ) -> List[Tuple[PriceSource, T]]:
        """
        Run `fn(source)` for each source on the pool under the same timeout.

        Sources that raise or miss the deadline are left out of the result;
        the rest keep submission order.
        """
        tasks = self._run(list(sources), fn)
        if not tasks:
            return []
        expired = self._await(tasks)
        results: List[Tuple[PriceSource, T]] = []
        for task in tasks:
            if task in expired:
                log.warning("%s timed out after %ss", task.source.name, self.task_timeout)
                continue
            try:
                results.append((task.source, task.future.result()))
            except Exception as e:
                log.warning("%s task failed: %s", task.source.name, e)
        return results

    def _run(self, sources: Sequence[PriceSource], fn: Callable[[PriceSource], Any]) -> List[_Task]:
        submitted_at = time.monotonic()
        tasks = []
        for source in sources:
            task = _Task(source, lambda s=source: fn(s), submitted_at)
            task.future = self._executor.submit(task.run)
            tasks.append(task)
        return tasks

    def _await(self, tasks: Sequence[_Task]) -> Set[_Task]:
        """
        Wait until every task finished or ran past its own deadline.

        Returns:
            Tasks that missed their deadline (cancelled when still queued)
        """
        pending = list(tasks)
        expired: Set[_Task] = set()
        while pending:
            now = time.monotonic()
            still_pending = []
            for task in pending:
                if task.future.done():
                    continue
                if now >= task.deadline(self.task_timeout):
                    task.future.cancel()
                    expired.add(task)
                    continue
                still_pending.append(task)
            pending = still_pending
            if not pending:
                break
            nearest = min(task.deadline(self.task_timeout) for task in pending)
            wait([task.future for task in pending], timeout=max(nearest - now, 0), return_when=FIRST_COMPLETED)
        return expired

    def _collect(
        self,
        symbol: str,
        tasks: Sequence[_Task],
        expired: Set[_Task],
    ) -> Tuple[List[PriceQuote], List[str]]:
        quotes: List[PriceQuote] = []
        failed: List[str] = []
        for task in tasks:
            source = task.source
            if task in expired:
                log.warning("%s timed out after %ss for %s", source.name, self.task_timeout, symbol)
                failed.append(source.name)
                continue
            try:
                outcome = task.future.result()
            except Exception as e:
                log.warning("%s task failed for %s: %s", source.name, symbol, e)
                failed.append(source.name)
                continue
            if isinstance(outcome, PriceQuote):
                quotes.append(outcome)
            else:
                if not getattr(outcome, "not_found", False):
                    failed.append(source.name)
                log.debug("%s gave no quote for %s: %s", source.name, symbol, outcome)
        return quotes, failed
