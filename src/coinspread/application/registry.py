# src/coinspread/application/registry.py
"""
Source Registry - Read-only Lookup of Configured Price Sources

Built once at startup from the enabled adapters and never mutated, so it
can be shared between threads without locking. Lookups are by
case-insensitive name, by region or by health; none of them do I/O.

Files that USE this module:
- coinspread.app (builds the registry)
- coinspread.application.aggregation (chooses which sources to fan out to)
- coinspread.application.price_service (name lookups, health map)
- tests.test_registry (unit tests)

Files that this module USES:
- coinspread.adapters.sources.base (PriceSource)
- coinspread.domain.errors (ConfigurationError)
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Tuple

from coinspread.adapters.sources.base import PriceSource
from coinspread.domain.errors import ConfigurationError
from coinspread.domain.models import Region


class SourceRegistry:
    """Immutable, ordered collection of price sources."""

    def __init__(self, sources: Iterable[PriceSource]):
        by_name = {}
        for source in sources:
            key = source.name.strip().upper()
            if not key:
                raise ConfigurationError(f"Source {source!r} has no name")
            if key in by_name:
                raise ConfigurationError(f"Duplicate source name: {key}")
            by_name[key] = source
        self._by_name = MappingProxyType(by_name)
        self._ordered: Tuple[PriceSource, ...] = tuple(by_name.values())

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[PriceSource]:
        return iter(self._ordered)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().upper() in self._by_name

    def get(self, name: str) -> Optional[PriceSource]:
        """Case-insensitive lookup; None if the source is not registered."""
        if not name:
            return None
        return self._by_name.get(name.strip().upper())

    def require(self, name: str) -> PriceSource:
        """
        Case-insensitive lookup that insists the source exists.

        Raises:
            ConfigurationError: If no source with that name is registered
        """
        source = self.get(name)
        if source is None:
            known = ", ".join(self.names()) or "none"
            raise ConfigurationError(f"Unknown source {name!r} (registered: {known})")
        return source

    def all(self) -> List[PriceSource]:
        return list(self._ordered)

    def names(self) -> List[str]:
        return [s.name for s in self._ordered]

    def by_region(self, region: Region) -> List[PriceSource]:
        return [s for s in self._ordered if s.region == region]

    def healthy(self, sources: Optional[Iterable[PriceSource]] = None) -> List[PriceSource]:
        """Subset whose cheap is_healthy() signal is True (all sources by default)."""
        candidates = self._ordered if sources is None else sources
        return [s for s in candidates if s.is_healthy()]
