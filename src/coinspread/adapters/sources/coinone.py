# src/coinspread/adapters/sources/coinone.py
"""
Coinone Price Source (domestic, KRW)

The public ticker carries no change rate, so it is derived from `last` and
`yesterday_last` at 4 decimal places (half-up) and expressed in percent.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Mapping, Optional

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError, SymbolNotFoundError
from coinspread.domain.models import PriceQuote, Region

log = logging.getLogger(__name__)

# Non-coin keys in the currency=all payload
_META_KEYS = {"result", "errorcode", "timestamp"}

# 107 = bad parameter value, 108 = unknown cryptocurrency
_UNLISTED_CODES = {"107", "108"}


def change_rate_from(last: Optional[Decimal], yesterday_last: Optional[Decimal]) -> Optional[Decimal]:
    """(last - yesterday_last) / yesterday_last at scale 4 half-up, times 100."""
    if last is None or yesterday_last is None or yesterday_last == 0:
        return None
    ratio = ((last - yesterday_last) / yesterday_last).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    return ratio * Decimal(100)


class CoinoneSource(PriceSource):
    name = "COINONE"
    display_name = "Coinone"
    region = Region.DOMESTIC
    currency = "KRW"

    def _default_base_url(self) -> str:
        return settings.coinone_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        payload = self._checked(self._get_json("/ticker", {"currency": symbol.lower()}), symbol)
        return self._parse(symbol, payload)

    def _fetch_all(self) -> List[PriceQuote]:
        payload = self._checked(self._get_json("/ticker", {"currency": "all"}))
        quotes: List[PriceQuote] = []
        for key, item in payload.items():
            if key.lower() in _META_KEYS or not isinstance(item, Mapping):
                continue
            try:
                quotes.append(self._parse(key.upper(), item))
            except SourceError as e:
                log.debug("Skipping unparseable Coinone ticker %s: %s", key, e)
        return quotes

    def _probe(self) -> bool:
        payload = self._get_json("/ticker", {"currency": "btc"})
        return isinstance(payload, Mapping) and payload.get("result") == "success"

    def _checked(self, payload: Any, symbol: Optional[str] = None) -> Mapping:
        if not isinstance(payload, Mapping):
            raise SourceError(f"COINONE unexpected response: {payload!r}", self.name)
        if payload.get("result") != "success":
            code = str(payload.get("errorCode", payload.get("errorcode", "")))
            if symbol is not None and code in _UNLISTED_CODES:
                raise SymbolNotFoundError(f"COINONE does not list {symbol} (errorCode={code})", self.name)
            raise SourceError(f"COINONE result={payload.get('result')!r} errorCode={code!r}", self.name)
        return payload

    def _parse(self, symbol: str, data: Mapping) -> PriceQuote:
        last = self._require_price(data.get("last"), symbol)
        volume = to_decimal(data.get("volume"))
        return self._make_quote(
            symbol,
            last,
            high_24h=to_decimal(data.get("high")),
            low_24h=to_decimal(data.get("low")),
            volume_24h=volume,
            trade_value_24h=None if volume is None else volume * last,
            change_rate=change_rate_from(last, to_decimal(data.get("yesterday_last"))),
        )
