# src/coinspread/shared/validators.py
"""
Input Validation Utilities - Symbols, URLs and Configuration Values

This module provides validation and normalization helpers shared by the
settings layer and the exchange adapters. Coin symbols arrive in many shapes
("KRW-BTC", "btc_krw", " eth ") and are normalized to a bare upper-case
ticker before any adapter sees them.

Files that USE this module:
- coinspread.config.settings (uses validation functions in Settings field validators)
- coinspread.adapters.sources.base (normalize_symbol for every quote request)
- coinspread.application.price_service (normalize_symbol for cache keys)

Files that this module USES:
- None (pure utility functions)
"""
import re
from typing import List, Optional

# Quote-currency prefixes/suffixes that exchanges glue onto a ticker
_MARKET_AFFIXES = ("KRW", "USDT", "USD", "BTC")

_SYMBOL_RE = re.compile(r"^[A-Z0-9]{1,15}$")


def normalize_symbol(symbol: Optional[str]) -> str:
    """
    Normalize a coin symbol to its bare upper-case ticker.

    Args:
        symbol: Raw symbol such as 'btc', 'KRW-BTC' or 'btc_krw'

    Returns:
        Upper-case ticker ('BTC'), or an empty string if nothing usable remains
    """
    if not symbol:
        return ""

    s = symbol.strip().upper()
    if "-" in s:
        # Upbit style: KRW-BTC
        prefix, _, rest = s.partition("-")
        if prefix in _MARKET_AFFIXES and rest:
            s = rest
    elif "_" in s:
        # Bithumb / Korbit style: BTC_KRW
        head, _, suffix = s.partition("_")
        if suffix in _MARKET_AFFIXES and head:
            s = head
    return s


def validate_symbol(symbol: str) -> bool:
    """
    Validate a normalized coin symbol.

    Args:
        symbol: Symbol to validate (after normalize_symbol)

    Returns:
        True if valid, False otherwise
    """
    if not symbol:
        return False
    return bool(_SYMBOL_RE.match(symbol))


def validate_api_key(api_key: str, min_length: int = 10) -> bool:
    """
    Validate API key format.

    Args:
        api_key: API key to validate
        min_length: Minimum length requirement

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return False

    return len(api_key) >= min_length and not api_key.isspace()


def validate_url(url: str) -> bool:
    """Validate that a base URL is an absolute http(s) URL."""
    if not url:
        return False
    return bool(re.match(r"^https?://[^\s/$.?#][^\s]*$", url))


def parse_csv_list(value: str, upper: bool = True) -> List[str]:
    """
    Split a comma-separated configuration value into clean items.

    Empty items are dropped and order is preserved; duplicates are removed.
    """
    items: List[str] = []
    for raw in (value or "").split(","):
        item = raw.strip()
        if not item:
            continue
        if upper:
            item = item.upper()
        if item not in items:
            items.append(item)
    return items
