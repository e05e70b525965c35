"""
Shared router state: health, metrics and quotas, common to every call in the process.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .health import HealthMonitor
from .ratelimit import RateLimiter
from .stats import MetricsLedger


@dataclass
class RouterState:
    health: HealthMonitor
    metrics: MetricsLedger
    rate_limits: Optional[RateLimiter] = None

    def provider_stats(self) -> dict[str, dict[str, Any]]:
        health = self.health.snapshot()
        stats = {}
        for pid, m in self.metrics.snapshot().items():
            stats[pid] = {
                "success_count": m.success_count,
                "error_count": m.error_count,
                "total_cost": m.total_cost,
                "total_tokens": m.total_tokens,
                "success_rate": m.success_rate,
                "average_latency": m.average_latency,
                "health": health.get(pid),
            }
        return stats
