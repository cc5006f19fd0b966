# src/coinspread/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from coinspread.domain.models import (
    AggregatedPriceSet,
    ComparisonResult,
    PremiumResult,
    PriceQuote,
    QuoteFailure,
    Region,
    SourcePrice,
    TradingStatus,
)
from coinspread.domain.errors import (
    ConfigurationError,
    DomainError,
    ExchangeRateUnavailableError,
    SourceError,
    SymbolNotFoundError,
)

__all__ = [
    "AggregatedPriceSet",
    "ComparisonResult",
    "PremiumResult",
    "PriceQuote",
    "QuoteFailure",
    "Region",
    "SourcePrice",
    "TradingStatus",
    "ConfigurationError",
    "DomainError",
    "ExchangeRateUnavailableError",
    "SourceError",
    "SymbolNotFoundError",
]
