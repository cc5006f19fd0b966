# src/coinspread/adapters/sources/upbit.py
"""
Upbit Price Source (domestic, KRW)

Files that USE this module:
- coinspread.app (registered as UPBIT)
- tests.test_sources (unit tests)

Files that this module USES:
- coinspread.adapters.sources.base (PriceSource)
- coinspread.config (UPBIT_BASE_URL)
"""
import logging
from decimal import Decimal
from typing import Any, List, Mapping, Set

from coinspread.adapters.sources.base import PriceSource, to_decimal
from coinspread.config import settings
from coinspread.domain.errors import SourceError, SymbolNotFoundError
from coinspread.domain.models import PriceQuote, Region, TradingStatus
from coinspread.shared.validators import normalize_symbol

log = logging.getLogger(__name__)

# Upbit accepts many markets per ticker call; keep URLs a sane length
_TICKER_BATCH = 100


class UpbitSource(PriceSource):
    name = "UPBIT"
    display_name = "Upbit"
    region = Region.DOMESTIC
    currency = "KRW"

    def _default_base_url(self) -> str:
        return settings.upbit_base_url

    def _fetch_quote(self, symbol: str) -> PriceQuote:
        # Unknown markets come back as 404 {"error": {"name": "Code not found"}}
        data = self._get_json("/ticker", {"markets": f"KRW-{symbol}"}, not_found_statuses=(404,))
        if not isinstance(data, list):
            raise SourceError(f"UPBIT unexpected ticker response: {data!r}", self.name)
        if not data:
            raise SymbolNotFoundError(f"UPBIT has no KRW-{symbol} market", self.name)
        return self._parse_ticker(data[0])

    def _fetch_all(self) -> List[PriceQuote]:
        markets = sorted(f"KRW-{s}" for s in self._fetch_supported())
        return self._tickers(markets)

    def _fetch_supported(self) -> Set[str]:
        data = self._get_json("/market/all")
        if not isinstance(data, list):
            raise SourceError(f"UPBIT unexpected market list: {data!r}", self.name)
        return {
            normalize_symbol(m["market"])
            for m in data
            if isinstance(m, Mapping) and str(m.get("market", "")).startswith("KRW-")
        }

    def _fetch_top(self, limit: int) -> List[PriceQuote]:
        # Upbit exposes no ranking; use the configured major coins in order
        wanted = [f"KRW-{s}" for s in self.major_coins[:limit]]
        by_symbol = {q.symbol: q for q in self._tickers(wanted)}
        return [by_symbol[s] for s in self.major_coins[:limit] if s in by_symbol]

    def _probe(self) -> bool:
        data = self._get_json("/market/all")
        return isinstance(data, list) and len(data) > 0

    def _tickers(self, markets: List[str]) -> List[PriceQuote]:
        quotes: List[PriceQuote] = []
        for i in range(0, len(markets), _TICKER_BATCH):
            batch = markets[i:i + _TICKER_BATCH]
            data = self._get_json("/ticker", {"markets": ",".join(batch)})
            if not isinstance(data, list):
                raise SourceError(f"UPBIT unexpected ticker response: {data!r}", self.name)
            for item in data:
                try:
                    quotes.append(self._parse_ticker(item))
                except SourceError as e:
                    log.debug("Skipping unparseable Upbit ticker: %s", e)
        return quotes

    def _parse_ticker(self, item: Any) -> PriceQuote:
        if not isinstance(item, Mapping) or "market" not in item:
            raise SourceError(f"UPBIT unexpected ticker item: {item!r}", self.name)
        symbol = normalize_symbol(item["market"])
        change = to_decimal(item.get("signed_change_rate"))
        return self._make_quote(
            symbol,
            self._require_price(item.get("trade_price"), symbol),
            status=self._status(item),
            high_24h=to_decimal(item.get("high_price")),
            low_24h=to_decimal(item.get("low_price")),
            volume_24h=to_decimal(item.get("acc_trade_volume_24h")),
            trade_value_24h=to_decimal(item.get("acc_trade_price_24h")),
            change_rate=None if change is None else change * Decimal(100),
        )

    @staticmethod
    def _status(item: Mapping) -> TradingStatus:
        state = str(item.get("market_state") or "ACTIVE").upper()
        if state == "DELISTED":
            return TradingStatus.DELISTED
        if state == "PREVIEW":
            return TradingStatus.HALTED
        if state != "ACTIVE":
            return TradingStatus.UNKNOWN
        if str(item.get("market_warning") or "NONE").upper() == "CAUTION":
            return TradingStatus.CAUTION
        return TradingStatus.NORMAL
