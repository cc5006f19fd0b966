# src/coinspread/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Every value can be overridden from the environment or a local .env file.

Files that USE this module:
- coinspread.app (builds the engine from settings)
- coinspread.adapters.sources.* (base URLs and HTTP timeout)
- coinspread.adapters.fx.* (FX rate, FastForex key and cache TTL)

Files that this module USES:
- coinspread.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from decimal import Decimal  # Exact arithmetic for the configured FX rate
from typing import Dict, List, Optional  # Type hints for collections and optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from coinspread.shared.validators import (
    parse_csv_list,  # Split comma-separated lists
    validate_api_key,  # Validate API key format
    validate_url,  # Validate exchange base URLs
)

# Every source name the engine knows how to build
KNOWN_SOURCES = ("UPBIT", "BITHUMB", "COINONE", "KORBIT", "BINANCE", "COINGECKO")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Exchange endpoints ---
    upbit_base_url: str = Field(default="https://api.upbit.com/v1", alias="UPBIT_BASE_URL")
    bithumb_base_url: str = Field(default="https://api.bithumb.com/public", alias="BITHUMB_BASE_URL")
    coinone_base_url: str = Field(default="https://api.coinone.co.kr", alias="COINONE_BASE_URL")
    korbit_base_url: str = Field(default="https://api.korbit.co.kr/v1", alias="KORBIT_BASE_URL")
    binance_base_url: str = Field(default="https://api.binance.com/api/v3", alias="BINANCE_BASE_URL")
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3", alias="COINGECKO_BASE_URL")

    # --- Sources ---
    enabled_sources: str = Field(
        default="UPBIT,BITHUMB,COINONE,KORBIT,BINANCE,COINGECKO", alias="ENABLED_SOURCES"
    )
    preferred_foreign_source: str = Field(default="BINANCE", alias="PREFERRED_FOREIGN_SOURCE")
    major_coins: str = Field(default="BTC,ETH,XRP,ADA,DOT,LINK,LTC,BCH", alias="MAJOR_COINS")

    # --- FX (USD -> KRW) ---
    # Placeholder until a live FX feed is configured; keep it close to market.
    usd_krw_rate: Decimal = Field(default=Decimal("1350.50"), alias="USD_KRW_RATE", gt=0)
    fastforex_key: str = Field(default="", alias="FASTFOREX_API_KEY")
    fastforex_url: str = Field(default="https://api.fastforex.io/fetch-one", alias="FASTFOREX_URL")
    fx_cache_minutes: int = Field(default=60, alias="FX_CACHE_MINUTES", ge=1, le=1440)

    # --- Aggregation ---
    aggregation_pool_size: int = Field(default=5, alias="AGGREGATION_POOL_SIZE", ge=1, le=64)
    # Counted from when a worker starts the call, not from submission
    source_timeout_seconds: float = Field(default=10.0, alias="SOURCE_TIMEOUT_SECONDS", gt=0, le=120)
    skip_unhealthy_sources: bool = Field(default=True, alias="SKIP_UNHEALTHY_SOURCES")
    health_failure_threshold: int = Field(default=3, alias="HEALTH_FAILURE_THRESHOLD", ge=1)
    health_cooldown_seconds: float = Field(default=60.0, alias="HEALTH_COOLDOWN_SECONDS", ge=0)

    # --- Cache Settings (in seconds) ---
    price_list_ttl_seconds: float = Field(default=10, alias="PRICE_LIST_TTL_SECONDS", gt=0)
    comparison_ttl_seconds: float = Field(default=30, alias="COMPARISON_TTL_SECONDS", gt=0)
    premium_ttl_seconds: float = Field(default=30, alias="PREMIUM_TTL_SECONDS", gt=0)
    premium_list_ttl_seconds: float = Field(default=60, alias="PREMIUM_LIST_TTL_SECONDS", gt=0)
    symbols_ttl_seconds: float = Field(default=600, alias="SYMBOLS_TTL_SECONDS", gt=0)
    top_coins_ttl_seconds: float = Field(default=300, alias="TOP_COINS_TTL_SECONDS", gt=0)
    cache_max_entries: int = Field(default=1024, alias="CACHE_MAX_ENTRIES", ge=16)

    # --- Premium ---
    premium_scale: int = Field(default=4, alias="PREMIUM_SCALE", ge=2, le=10)
    premium_alert_threshold_pct: float = Field(default=3.0, alias="PREMIUM_ALERT_THRESHOLD_PCT", ge=0.0)
    premium_alert_dedup_minutes: int = Field(default=30, alias="PREMIUM_ALERT_DEDUP_MINUTES", ge=1, le=1440)

    # --- Logging (for server deployment) ---
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="COINSPREAD_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def enabled_source_names(self) -> List[str]:
        return parse_csv_list(self.enabled_sources)

    @property
    def major_coin_list(self) -> List[str]:
        return parse_csv_list(self.major_coins)

    @property
    def cache_ttls(self) -> Dict[str, float]:
        """
        TTL per cached computation kind, in seconds.

        The 'premium_alert' entry is the de-dup window for premium notifications.
        """
        return {
            "prices": self.price_list_ttl_seconds,
            "source_quotes": self.price_list_ttl_seconds,
            "comparison": self.comparison_ttl_seconds,
            "premium": self.premium_ttl_seconds,
            "premium_list": self.premium_list_ttl_seconds,
            "symbols": self.symbols_ttl_seconds,
            "top_coins": self.top_coins_ttl_seconds,
            "premium_alert": self.premium_alert_dedup_minutes * 60,
        }

    @field_validator(
        "upbit_base_url",
        "bithumb_base_url",
        "coinone_base_url",
        "korbit_base_url",
        "binance_base_url",
        "coingecko_base_url",
        "fastforex_url",
    )
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate exchange base URL and strip the trailing slash."""
        if not validate_url(v):
            raise ValueError(f"Invalid URL: {v!r}")
        return v.rstrip("/")

    @field_validator("enabled_sources")
    @classmethod
    def validate_enabled_sources(cls, v: str) -> str:
        """Reject unknown source names early instead of at first request."""
        names = parse_csv_list(v)
        if not names:
            raise ValueError("ENABLED_SOURCES must name at least one source")
        unknown = [n for n in names if n not in KNOWN_SOURCES]
        if unknown:
            raise ValueError(f"Unknown source(s) in ENABLED_SOURCES: {', '.join(unknown)}")
        return v

    @field_validator("preferred_foreign_source")
    @classmethod
    def validate_preferred_source(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in KNOWN_SOURCES:
            raise ValueError(f"Unknown PREFERRED_FOREIGN_SOURCE: {v}")
        return v

    @field_validator("fastforex_key")
    @classmethod
    def validate_fastforex_key(cls, v: str) -> str:
        """Validate API key format (empty means 'use the configured USD_KRW_RATE')."""
        if v and not validate_api_key(v):
            raise ValueError("Invalid FASTFOREX_API_KEY format")
        return v


# Global settings instance
settings = Settings()
