# src/coinspread/adapters/formatting/formatter.py
"""
Message Formatter - Text Rendering of Premiums and Comparisons

Turns PremiumResult and ComparisonResult values into plain-text lines for
notifiers and log output. Prices in KRW are shown without decimals; USD
prices keep cents.

Files that USE this module:
- coinspread.application.notifications (LoggingPremiumNotifier payload text)
- coinspread.app (startup health summary)
- tests.test_formatter (unit tests)

Files that this module USES:
- coinspread.domain.models (PremiumResult, ComparisonResult)
"""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from coinspread.domain.models import ComparisonResult, PremiumResult


def _fmt_price(value: Optional[Decimal], currency: str = "KRW") -> str:
    """
    Format a price with thousands separators.

    Returns:
        '95,000,000 KRW', '70,123.45 USD', or 'N/A' if value is None
    """
    if value is None:
        return "N/A"
    if currency == "KRW":
        return f"{value:,.0f} KRW"
    return f"{value:,.2f} {currency}"


def _fmt_pct(value: Optional[Decimal]) -> str:
    """
    Format a percentage with direction arrow.

    Returns:
        '+5.82% 📈', '-1.20% 📉', '0.00% ⏸', or '—' if value is None
    """
    if value is None:
        return "—"
    arrow = "📈" if value > 0 else ("📉" if value < 0 else "⏸")
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}% {arrow}"


def format_premium(result: Optional[PremiumResult]) -> str:
    """Multi-line summary of a premium result."""
    if result is None:
        return "Premium: N/A (insufficient data)"

    lines = [
        f"🇰🇷 {result.symbol} premium: {_fmt_pct(result.premium_rate)}",
        f"— Domestic ({result.highest_domestic_source}): {_fmt_price(result.domestic_reference_price)}",
        f"— Foreign ({result.base_foreign_source}): "
        f"{_fmt_price(result.foreign_reference_price, 'USD')} ≈ {_fmt_price(result.converted_foreign_price)}",
        f"— Difference: {_fmt_price(result.premium_amount)}",
        f"— USD/KRW: {result.exchange_rate:,.2f}",
    ]
    return "\n".join(lines)


def format_comparison(result: Optional[ComparisonResult]) -> str:
    """Multi-line summary of a cross-exchange comparison."""
    if result is None:
        return "Comparison: N/A (no prices)"

    cur = result.currency
    lines = [f"📊 {result.symbol} across {result.total_sources} exchanges "
             f"({result.domestic_count} domestic, {result.foreign_count} foreign)"]
    for quote in result.quotes:
        lines.append(
            f"— {quote.source_display_name or quote.source_name}: "
            f"{_fmt_price(quote.current_price, cur)} {_fmt_pct(quote.change_rate)}"
        )
    lines.append(
        f"High/Low: {result.highest.source_name} {_fmt_price(result.highest.price, cur)} / "
        f"{result.lowest.source_name} {_fmt_price(result.lowest.price, cur)}"
    )
    rate = f"{result.price_spread_rate:.2f}%" if result.price_spread_rate is not None else "—"
    lines.append(f"Spread: {_fmt_price(result.price_spread, cur)} ({rate})")
    lines.append(
        f"Avg/Median: {_fmt_price(result.average_price, cur)} / {_fmt_price(result.median_price, cur)}"
    )
    return "\n".join(lines)


def format_health(health: Dict[str, bool]) -> str:
    """One line per source: '✅ UPBIT' / '❌ KORBIT'."""
    if not health:
        return "No sources registered"
    return "\n".join(f"{'✅' if ok else '❌'} {name}" for name, ok in health.items())
