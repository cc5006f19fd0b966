# src/coinspread/__init__.py
"""
CoinSpread - Multi-Exchange Crypto Price Aggregation Engine

Fans out price queries to domestic (KRW) and foreign (USD) crypto exchanges,
merges the answers into one sorted price list, computes cross-exchange
comparison statistics and the domestic-vs-foreign ("kimchi") premium.
"""

__version__ = "1.0.0"
