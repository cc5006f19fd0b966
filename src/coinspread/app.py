# src/coinspread/app.py
"""
Main Application Entry Point - Composition Root

Wires settings, exchange adapters, the FX provider, the shared worker pool,
the cache and the notifier into one PriceService. Other programs embed the
engine through build_service(); `python -m coinspread` only sets up logging,
prints the registered sources and probes their health.

Files that USE this module:
- coinspread.__main__ (python -m coinspread)
- tests.test_app (wiring tests)

Files that this module USES:
- coinspread.config (settings)
- coinspread.shared.logging_conf (setup_logging)
- coinspread.adapters.sources (exchange adapters)
- coinspread.adapters.fx (USD/KRW providers)
- coinspread.application.* (registry, fan-out, cache, premium, facade)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import logging  # Standard library for logging messages and errors
from typing import List, Optional  # Type hints

from coinspread.adapters.formatting.formatter import format_health  # Health summary text
from coinspread.adapters.fx import (
    ExchangeRateProvider,  # FX provider interface
    FastForexRateProvider,  # Live USD/KRW feed
    RateProviderChain,  # Live feed with configured fallback
    StaticRateProvider,  # Configured USD/KRW rate
)
from coinspread.adapters.sources import SOURCE_CLASSES, PriceSource  # Exchange adapters
from coinspread.application.aggregation import AggregationContext  # Shared worker pool
from coinspread.application.cache import ResultCache  # Per-kind TTL cache
from coinspread.application.health import HealthChecker  # Probe-based health report
from coinspread.application.notifications import (
    LoggingPremiumNotifier,  # Default notifier
    NotificationDispatcher,  # Fire-and-forget hand-off
    PremiumAlertGate,  # Threshold + de-dup
    PremiumNotifier,  # Notifier protocol
)
from coinspread.application.premium import PremiumCalculator  # Premium math
from coinspread.application.price_service import PriceService  # Public facade
from coinspread.application.registry import SourceRegistry  # Source lookup
from coinspread.config.settings import Settings  # Settings model
from coinspread.domain.errors import ConfigurationError  # Wiring errors
from coinspread.shared.logging_conf import setup_logging  # Configure logging with file rotation

log = logging.getLogger(__name__)


def build_sources(cfg: Settings) -> List[PriceSource]:
    """Instantiate the enabled adapters in ENABLED_SOURCES order."""
    sources = []
    for name in cfg.enabled_source_names:
        cls = SOURCE_CLASSES.get(name)
        if cls is None:
            raise ConfigurationError(f"No adapter for source {name}")
        sources.append(cls(
            timeout=cfg.http_timeout_seconds,
            failure_threshold=cfg.health_failure_threshold,
            cooldown_seconds=cfg.health_cooldown_seconds,
            major_coins=cfg.major_coin_list,
        ))
    return sources


def build_rate_provider(cfg: Settings) -> ExchangeRateProvider:
    """FastForex in front of the configured rate when a key is set, else the configured rate."""
    static = StaticRateProvider(cfg.usd_krw_rate)
    if not cfg.fastforex_key:
        log.warning("No FASTFOREX_API_KEY; using configured USD/KRW rate %s", cfg.usd_krw_rate)
        return static
    live = FastForexRateProvider(
        api_key=cfg.fastforex_key,
        base_url=cfg.fastforex_url,
        timeout=cfg.http_timeout_seconds,
        cache_minutes=cfg.fx_cache_minutes,
    )
    return RateProviderChain(primary=live, fallback=static)


def build_service(
    cfg: Optional[Settings] = None,
    sources: Optional[List[PriceSource]] = None,
    rate_provider: Optional[ExchangeRateProvider] = None,
    notifier: Optional[PremiumNotifier] = None,
) -> PriceService:
    """
    Assemble the engine.

    Args:
        cfg: Settings (defaults to the global settings instance)
        sources: Adapters to register (defaults to ENABLED_SOURCES)
        rate_provider: USD/KRW provider (defaults to build_rate_provider)
        notifier: Premium notifier (defaults to LoggingPremiumNotifier)

    Raises:
        ConfigurationError: If the preferred foreign source is not registered
    """
    if cfg is None:
        from coinspread.config import settings as cfg

    registry = SourceRegistry(sources if sources is not None else build_sources(cfg))
    preferred = registry.get(cfg.preferred_foreign_source)
    if preferred is None:
        raise ConfigurationError(
            f"PREFERRED_FOREIGN_SOURCE {cfg.preferred_foreign_source} is not among enabled sources"
        )

    fx = rate_provider or build_rate_provider(cfg)
    context = AggregationContext(
        registry,
        pool_size=cfg.aggregation_pool_size,
        task_timeout=cfg.source_timeout_seconds,
        skip_unhealthy=cfg.skip_unhealthy_sources,
    )
    cache = ResultCache(cfg.cache_ttls, maxsize=cfg.cache_max_entries)
    calculator = PremiumCalculator(
        context,
        fx,
        preferred_foreign_source=preferred.name,
        scale=cfg.premium_scale,
    )
    dispatcher = NotificationDispatcher(
        notifier or LoggingPremiumNotifier(),
        PremiumAlertGate(cache, cfg.premium_alert_threshold_pct),
    )

    log.info(
        "Engine ready: sources=%s, reference=%s, pool=%d, task_timeout=%ss",
        ", ".join(registry.names()), preferred.name, context.pool_size, context.task_timeout,
    )
    return PriceService(
        registry,
        context,
        calculator,
        cache,
        fx,
        dispatcher=dispatcher,
        major_coins=cfg.major_coin_list,
    )


def main() -> None:
    """
    Start-up check for deployments.

    1. Sets up logging from settings
    2. Builds the engine
    3. Probes every source and the FX provider and logs the report
    """
    from coinspread.config import settings

    setup_logging(
        level=logging.INFO,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        log_stdout=settings.log_stdout,
    )

    service = build_service(settings)
    try:
        report = HealthChecker(service.registry, service.rate_provider).get_overall_health()
        log.info("Health: %s - %s", report["status"], report["message"])
        log.info("Sources:\n%s", format_health(service.source_health()))
    finally:
        service.close()


if __name__ == "__main__":
    main()
