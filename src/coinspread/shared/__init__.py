# src/coinspread/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Symbol and configuration validation
- Logging configuration
"""

from coinspread.shared.validators import (
    normalize_symbol,
    parse_csv_list,
    validate_api_key,
    validate_symbol,
    validate_url,
)

__all__ = [
    "normalize_symbol",
    "parse_csv_list",
    "validate_api_key",
    "validate_symbol",
    "validate_url",
]
