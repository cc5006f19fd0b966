# src/coinspread/application/health.py
"""
Health Checker - Source Monitoring and Diagnostics

Runs a real liveness probe against every registered source (and the FX
provider) and reports which ones answer. Probing also resets or advances
each adapter's cheap health signal, so a periodic check brings recovered
exchanges back into the fan-out before their cooldown runs out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from coinspread.adapters.fx.base import ExchangeRateProvider
from coinspread.adapters.sources.base import PriceSource
from coinspread.application.registry import SourceRegistry

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Represents the health status of a component."""
    is_healthy: bool
    message: str
    last_check: datetime
    details: Optional[Dict[str, Any]] = None


class HealthChecker:
    """Centralized health checking for sources and the FX provider."""

    def __init__(self, registry: SourceRegistry, rate_provider: Optional[ExchangeRateProvider] = None):
        self.registry = registry
        self.rate_provider = rate_provider

    def check_source(self, source: PriceSource) -> HealthStatus:
        """Probe one exchange API."""
        ok = source.probe()
        return HealthStatus(
            is_healthy=ok,
            message=f"{source.display_name or source.name} API {'healthy' if ok else 'unreachable'}",
            last_check=datetime.now(timezone.utc),
            details={"region": source.region.value, "base_url": source.base_url},
        )

    def check_exchange_rate(self) -> HealthStatus:
        """Check that a USD/KRW rate can be obtained."""
        if self.rate_provider is None:
            return HealthStatus(
                is_healthy=False,
                message="FX provider not configured",
                last_check=datetime.now(timezone.utc),
                details={"configured": False},
            )
        try:
            rate = self.rate_provider.usd_krw_rate()
            return HealthStatus(
                is_healthy=True,
                message=f"USD/KRW rate available: {rate}",
                last_check=datetime.now(timezone.utc),
                details={"usd_krw": str(rate)},
            )
        except Exception as e:
            logger.error("FX health check failed: %s", e)
            return HealthStatus(
                is_healthy=False,
                message=f"FX provider error: {str(e)}",
                last_check=datetime.now(timezone.utc),
            )

    def get_overall_health(self) -> Dict[str, Any]:
        """
        Get overall health status of all components.

        Degraded if any component fails; unhealthy if no source answers at all.
        """
        checks = {source.name: self.check_source(source) for source in self.registry}
        checks["fx_rate"] = self.check_exchange_rate()

        healthy_checks = [name for name, check in checks.items() if check.is_healthy]
        failed_checks = [name for name, check in checks.items() if not check.is_healthy]
        sources_up = [name for name in healthy_checks if name in self.registry]

        if not failed_checks:
            status = "healthy"
            status_message = "All systems healthy"
        elif not sources_up:
            status = "unhealthy"
            status_message = "No price source reachable"
        else:
            status = "degraded"
            status_message = f"Degraded - {len(failed_checks)} component(s) failed: {', '.join(failed_checks)}"

        return {
            "overall_healthy": not failed_checks,
            "status": status,
            "message": status_message,
            "healthy_components": healthy_checks,
            "failed_components": failed_checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                name: {
                    "healthy": check.is_healthy,
                    "message": check.message,
                    "last_check": check.last_check.isoformat(),
                    "details": check.details,
                }
                for name, check in checks.items()
            },
        }
