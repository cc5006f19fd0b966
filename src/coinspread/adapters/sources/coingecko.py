# src/coinspread/adapters/sources/coingecko.py
"""
CoinGecko Price Source (foreign market-data aggregator, USD)

CoinGecko addresses coins by slug id ('bitcoin'), not ticker, so symbols are
mapped through COIN_IDS. It is the only source with market caps and is
asked first for market-cap rankings.

Files that USE this module:
- coinspread.app (registered as COINGECKO)
- coinspread.application.price_service (preferred source for top_coins)
- tests.test_sources (unit tests)

Files that this module USES:
- coinspread.adapters.sources.base (PriceSource)
- coinspread.config (COINGECKO_BASE_URL)
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Set

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError, SymbolNotFoundError
from coinspread.domain.models import PriceQuote, Region

log = logging.getLogger(__name__)

VS_CURRENCY = "usd"

COIN_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOT": "polkadot",
    "LINK": "chainlink",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
    "SOL": "solana",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "TRX": "tron",
    "MATIC": "matic-network",
    "ATOM": "cosmos",
    "ETC": "ethereum-classic",
    "XLM": "stellar",
}


class CoinGeckoSource(PriceSource):
    name = "COINGECKO"
    display_name = "CoinGecko"
    region = Region.FOREIGN
    currency = "USD"

    def __init__(self, *args, coin_ids: Optional[Mapping[str, str]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.coin_ids: Dict[str, str] = dict(coin_ids or COIN_IDS)

    def _default_base_url(self) -> str:
        return settings.coingecko_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        coin_id = self.coin_ids.get(symbol)
        if coin_id is None:
            raise SymbolNotFoundError(f"COINGECKO has no id mapping for {symbol}", self.name)
        items = self._markets({"ids": coin_id})
        if not items:
            raise SymbolNotFoundError(f"COINGECKO returned no market for {coin_id}", self.name)
        return self._parse(items[0])

    def _fetch_all(self) -> List[PriceQuote]:
        return self._parse_many(self._markets({
            "ids": ",".join(sorted(self.coin_ids.values())),
            "order": "market_cap_desc",
        }))

    def _fetch_supported(self) -> Set[str]:
        return set(self.coin_ids)

    def _fetch_top(self, limit: int) -> List[PriceQuote]:
        return self._parse_many(self._markets({
            "order": "market_cap_desc",
            "per_page": min(limit, 250),
            "page": 1,
        }))

    def _rank(self, quotes: List[PriceQuote]) -> List[PriceQuote]:
        return sorted(quotes, key=lambda q: q.market_cap or Decimal(0), reverse=True)

    def _probe(self) -> bool:
        data = self._get_json("/ping")
        return isinstance(data, Mapping) and "gecko_says" in data

    def _markets(self, params: Mapping[str, Any]) -> List[Any]:
        query = {"vs_currency": VS_CURRENCY}
        query.update(params)
        data = self._get_json("/coins/markets", query)
        if not isinstance(data, list):
            raise SourceError(f"COINGECKO unexpected markets response: {data!r}", self.name)
        return data

    def _parse_many(self, items: List[Any]) -> List[PriceQuote]:
        quotes: List[PriceQuote] = []
        for item in items:
            try:
                quotes.append(self._parse(item))
            except SourceError as e:
                log.debug("Skipping unparseable CoinGecko market: %s", e)
        return quotes

    def _parse(self, item: Any) -> PriceQuote:
        if not isinstance(item, Mapping) or not item.get("symbol"):
            raise SourceError(f"COINGECKO unexpected market item: {item!r}", self.name)
        symbol = str(item["symbol"]).upper()
        return self._make_quote(
            symbol,
            self._require_price(item.get("current_price"), symbol),
            high_24h=to_decimal(item.get("high_24h")),
            low_24h=to_decimal(item.get("low_24h")),
            trade_value_24h=to_decimal(item.get("total_volume")),
            change_rate=to_decimal(item.get("price_change_percentage_24h")),
            market_cap=to_decimal(item.get("market_cap")),
        )
