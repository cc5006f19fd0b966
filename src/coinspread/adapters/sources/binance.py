# src/coinspread/adapters/sources/binance.py
"""
Binance Price Source (foreign, USD via USDT pairs)

Binance is the default reference exchange for the premium calculation.
USDT is treated as USD at par.

Files that USE this module:
- coinspread.app (registered as BINANCE)
- tests.test_sources (unit tests)
"""
import logging
from typing import Any, List, Mapping

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError
from coinspread.domain.models import PriceQuote, Region

log = logging.getLogger(__name__)

QUOTE_ASSET = "USDT"


class BinanceSource(PriceSource):
    name = "BINANCE"
    display_name = "Binance"
    region = Region.FOREIGN
    currency = "USD"

    def _default_base_url(self) -> str:
        return settings.binance_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        # Unknown pairs: HTTP 400 {"code": -1121, "msg": "Invalid symbol."}
        data = self._get_json(
            "/ticker/24hr", {"symbol": f"{symbol}{QUOTE_ASSET}"}, not_found_statuses=(400,)
        )
        if not isinstance(data, Mapping):
            raise SourceError(f"BINANCE unexpected response: {data!r}", self.name)
        return self._parse(symbol, data)

    def _fetch_all(self) -> List[PriceQuote]:
        data = self._get_json("/ticker/24hr")
        if not isinstance(data, list):
            raise SourceError(f"BINANCE unexpected response: {type(data).__name__}", self.name)
        quotes: List[PriceQuote] = []
        for item in data:
            pair = str(item.get("symbol", "")) if isinstance(item, Mapping) else ""
            if not pair.endswith(QUOTE_ASSET) or len(pair) == len(QUOTE_ASSET):
                continue
            try:
                quotes.append(self._parse(pair[: -len(QUOTE_ASSET)], item))
            except SourceError as e:
                log.debug("Skipping unparseable Binance ticker %s: %s", pair, e)
        return quotes

    def _probe(self) -> bool:
        # /ping answers {} when the API is up
        return self._get_json("/ping") == {}

    def _parse(self, symbol: str, data: Mapping[str, Any]) -> PriceQuote:
        return self._make_quote(
            symbol,
            self._require_price(data.get("lastPrice"), symbol),
            high_24h=to_decimal(data.get("highPrice")),
            low_24h=to_decimal(data.get("lowPrice")),
            volume_24h=to_decimal(data.get("volume")),
            trade_value_24h=to_decimal(data.get("quoteVolume")),
            change_rate=to_decimal(data.get("priceChangePercent")),
        )
