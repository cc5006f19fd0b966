# src/coinspread/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions. Source errors never leave
an adapter: the adapter base class turns them into QuoteFailure values.
Insufficient data is not an error at all; services return None for it.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class SourceError(DomainError):
    """Raised inside an adapter when a transport or parse step fails."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class SymbolNotFoundError(SourceError):
    """Raised inside an adapter when the exchange does not list the symbol."""
    pass


class ConfigurationError(DomainError):
    """Raised when a caller names a source that is not registered, or wiring is invalid."""
    pass


class ExchangeRateUnavailableError(DomainError):
    """Raised by an FX rate provider when no usable USD->KRW rate is available."""
    pass
