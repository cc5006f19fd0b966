# src/coinspread/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Sources (exchange and aggregator APIs)
- FX (USD -> KRW rate providers)
- Formatting (notification payload text)
"""

__all__ = []
