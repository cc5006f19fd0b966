# src/coinspread/adapters/sources/bithumb.py
"""
Bithumb Price Source (domestic, KRW)

Bithumb wraps every answer as {"status": "0000", "data": {...}}; any other
status is an error. Status 5500 ("Invalid Parameter") is what an unlisted
coin produces.

Files that USE this module:
- coinspread.app (registered as BITHUMB)
- tests.test_sources (unit tests)
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Set

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError, SymbolNotFoundError
from coinspread.domain.models import PriceQuote, Region

log = logging.getLogger(__name__)

_OK = "0000"
_INVALID_PARAMETER = "5500"


class BithumbSource(PriceSource):
    name = "BITHUMB"
    display_name = "Bithumb"
    region = Region.DOMESTIC
    currency = "KRW"

    def _default_base_url(self) -> str:
        return settings.bithumb_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        data = self._unwrap(self._get_json(f"/ticker/{symbol}_KRW"), symbol)
        return self._parse(symbol, data)

    def _fetch_all(self) -> List[PriceQuote]:
        quotes: List[PriceQuote] = []
        for symbol, item in self._all_tickers().items():
            try:
                quotes.append(self._parse(symbol, item))
            except SourceError as e:
                log.debug("Skipping unparseable Bithumb ticker %s: %s", symbol, e)
        return quotes

    def _fetch_supported(self) -> Set[str]:
        return set(self._all_tickers())

    def _rank(self, quotes: List[PriceQuote]) -> List[PriceQuote]:
        return sorted(quotes, key=lambda q: q.volume_24h or Decimal(0), reverse=True)

    def _probe(self) -> bool:
        payload = self._get_json("/ticker/BTC_KRW")
        return isinstance(payload, Mapping) and payload.get("status") == _OK

    def _all_tickers(self) -> Dict[str, Any]:
        data = self._unwrap(self._get_json("/ticker/ALL_KRW"), "ALL")
        # "date" sits next to the per-coin entries
        return {k.upper(): v for k, v in data.items() if k != "date" and isinstance(v, Mapping)}

    def _unwrap(self, payload: Any, symbol: str) -> Mapping:
        if not isinstance(payload, Mapping):
            raise SourceError(f"BITHUMB unexpected response: {payload!r}", self.name)
        status = str(payload.get("status", ""))
        if status == _INVALID_PARAMETER:
            raise SymbolNotFoundError(
                f"BITHUMB rejected {symbol}: {payload.get('message', 'invalid parameter')}", self.name
            )
        if status != _OK:
            raise SourceError(f"BITHUMB status {status}: {payload.get('message', '')}", self.name)
        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise SourceError("BITHUMB response missing 'data' field", self.name)
        return data

    def _parse(self, symbol: str, data: Mapping) -> PriceQuote:
        return self._make_quote(
            symbol,
            self._require_price(data.get("closing_price"), symbol),
            high_24h=to_decimal(data.get("max_price")),
            low_24h=to_decimal(data.get("min_price")),
            volume_24h=to_decimal(data.get("units_traded_24H")),
            trade_value_24h=to_decimal(data.get("acc_trade_value_24H")),
            change_rate=to_decimal(data.get("fluctate_rate_24H")),
        )
