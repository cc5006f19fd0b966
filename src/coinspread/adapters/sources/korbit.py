# src/coinspread/adapters/sources/korbit.py
"""
Korbit Price Source (domestic, KRW)

Korbit names markets as lower-case currency pairs ('btc_krw').
"""
import logging
from decimal import Decimal
from typing import Any, List, Mapping

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError
from coinspread.domain.models import PriceQuote, Region
from coinspread.shared.validators import normalize_symbol

log = logging.getLogger(__name__)


class KorbitSource(PriceSource):
    name = "KORBIT"
    display_name = "Korbit"
    region = Region.DOMESTIC
    currency = "KRW"

    def _default_base_url(self) -> str:
        return settings.korbit_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        data = self._get_json(
            "/ticker/detailed",
            {"currency_pair": f"{symbol.lower()}_krw"},
            not_found_statuses=(400, 404),
        )
        if not isinstance(data, Mapping):
            raise SourceError(f"KORBIT unexpected response: {data!r}", self.name)
        return self._parse(symbol, data)

    def _fetch_all(self) -> List[PriceQuote]:
        data = self._get_json("/ticker/detailed/all")
        if not isinstance(data, Mapping):
            raise SourceError(f"KORBIT unexpected response: {data!r}", self.name)
        quotes: List[PriceQuote] = []
        for pair, item in data.items():
            if not pair.lower().endswith("_krw") or not isinstance(item, Mapping):
                continue
            try:
                quotes.append(self._parse(normalize_symbol(pair), item))
            except SourceError as e:
                log.debug("Skipping unparseable Korbit ticker %s: %s", pair, e)
        return quotes

    def _rank(self, quotes: List[PriceQuote]) -> List[PriceQuote]:
        return sorted(quotes, key=lambda q: q.volume_24h or Decimal(0), reverse=True)

    def _probe(self) -> bool:
        data = self._get_json("/ticker/detailed", {"currency_pair": "btc_krw"})
        return isinstance(data, Mapping) and to_decimal(data.get("last")) is not None

    def _parse(self, symbol: str, data: Mapping[str, Any]) -> PriceQuote:
        # `change` is the absolute KRW move; `changePercent` is the rate
        return self._make_quote(
            symbol,
            self._require_price(data.get("last"), symbol),
            high_24h=to_decimal(data.get("high")),
            low_24h=to_decimal(data.get("low")),
            volume_24h=to_decimal(data.get("volume")),
            change_rate=to_decimal(data.get("changePercent")),
        )
