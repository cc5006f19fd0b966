# src/coinspread/application/notifications.py
"""
Premium Notifications - Hand-off Contract and Alert Gate

Only the hand-off is in scope here: a PremiumResult goes to whatever
notifier was wired in, on a background worker, and the outcome is not
awaited. Delivery (push, websocket, chat) belongs to the notifier.

The gate keeps the same premium from being announced over and over: a
symbol passes only if its premium moved past the threshold and it has not
been announced within the de-dup window (the 'premium_alert' cache TTL).

Files that USE this module:
- coinspread.app (wires LoggingPremiumNotifier and PremiumAlertGate)
- coinspread.application.price_service (hands fresh premiums to the notifier)
- tests.test_notifications (unit tests)

Files that this module USES:
- coinspread.application.cache (mark_once de-dup)
- coinspread.adapters.formatting.formatter (payload text)
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal
from typing import Optional, Protocol

from coinspread.adapters.formatting.formatter import format_premium
from coinspread.application.cache import ResultCache
from coinspread.config import settings
from coinspread.domain.models import PremiumResult

log = logging.getLogger(__name__)

ALERT_KIND = "premium_alert"


class PremiumNotifier(Protocol):
    """Anything that can take a computed premium."""
    def notify_premium(self, result: PremiumResult) -> None:
        ...


class LoggingPremiumNotifier:
    """Default notifier: writes the formatted premium to the log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or log

    def notify_premium(self, result: PremiumResult) -> None:
        self.logger.info("Premium alert\n%s", format_premium(result))


class PremiumAlertGate:
    def __init__(self, cache: ResultCache, threshold_pct: Optional[float] = None):
        self.cache = cache
        threshold = settings.premium_alert_threshold_pct if threshold_pct is None else threshold_pct
        self.threshold = Decimal(str(threshold))

    def should_notify(self, result: PremiumResult) -> bool:
        if abs(result.premium_rate) < self.threshold:
            return False
        if not self.cache.mark_once(ALERT_KIND, result.symbol):
            log.debug("Premium alert for %s already sent in this window", result.symbol)
            return False
        return True


class NotificationDispatcher:
    """Fire-and-forget hand-off of premiums to a notifier."""

    def __init__(self, notifier: PremiumNotifier, gate: Optional[PremiumAlertGate] = None):
        self.notifier = notifier
        self.gate = gate
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="premium-notify")

    def submit(self, result: PremiumResult) -> Optional[Future]:
        """
        Queue the premium for delivery if the gate lets it through.

        Returns:
            The delivery future (callers need not wait on it), or None if gated
        """
        if self.gate is not None and not self.gate.should_notify(result):
            return None
        return self._executor.submit(self._deliver, result)

    def _deliver(self, result: PremiumResult) -> None:
        try:
            self.notifier.notify_premium(result)
        except Exception as e:
            log.warning("Premium notification for %s failed: %s", result.symbol, e)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
