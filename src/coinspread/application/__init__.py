# src/coinspread/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
No direct I/O dependencies - uses adapters through interfaces.
"""

from coinspread.application.aggregation import AggregationContext
from coinspread.application.cache import ResultCache
from coinspread.application.comparison import compare
from coinspread.application.health import HealthChecker, HealthStatus
from coinspread.application.notifications import (
    LoggingPremiumNotifier,
    NotificationDispatcher,
    PremiumAlertGate,
    PremiumNotifier,
)
from coinspread.application.premium import PremiumCalculator
from coinspread.application.price_service import PriceService
from coinspread.application.registry import SourceRegistry

__all__ = [
    "AggregationContext",
    "ResultCache",
    "compare",
    "HealthChecker",
    "HealthStatus",
    "LoggingPremiumNotifier",
    "NotificationDispatcher",
    "PremiumAlertGate",
    "PremiumNotifier",
    "PremiumCalculator",
    "PriceService",
    "SourceRegistry",
]
