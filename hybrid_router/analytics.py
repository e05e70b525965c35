"""
Usage analytics derived from the provider stats: what the aggregator saved,
how reliable each provider has been, and what an operator should look at.
"""

from typing import Any, Optional

from .registry import ProviderRegistry

MIN_SUCCESS_RATE = 0.95
DEFAULT_COST_THRESHOLD = 1000.0


def cost_savings(registry: ProviderRegistry, stats: dict[str, dict[str, Any]]) -> dict[str, Optional[float]]:
    """Compare actual spend with what the same traffic would have cost at full retail."""
    actual = 0.0
    estimated_direct = 0.0
    for descriptor in registry:
        spent = stats.get(descriptor.name, {}).get("total_cost", 0.0)
        actual += spent
        if descriptor.aggregator:
            estimated_direct += spent / descriptor.cost_multiplier
        else:
            estimated_direct += spent

    savings = estimated_direct - actual
    percentage = (savings / estimated_direct) * 100 if estimated_direct > 0 else None
    return {
        "actual_cost": actual,
        "estimated_direct_cost": estimated_direct,
        "savings": savings,
        "savings_percentage": percentage,
    }


def reliability(stats: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
    report = {}
    for pid, s in stats.items():
        health = s.get("health") or {}
        report[pid] = {
            "success_rate": s["success_rate"],
            "healthy": health.get("effective", False),
            "total_requests": s["success_count"] + s["error_count"],
        }
    return report


def recommendations(
    stats: dict[str, dict[str, Any]],
    cost_threshold: float = DEFAULT_COST_THRESHOLD,
) -> list[dict[str, Any]]:
    found = []
    for pid, s in stats.items():
        rate = s["success_rate"]
        if rate is not None and rate < MIN_SUCCESS_RATE:
            found.append({
                "type": "reliability",
                "provider": pid,
                "message": f"{pid} success rate is {rate:.1%}; consider removing it from primary routes",
            })
        if s["total_cost"] > cost_threshold:
            found.append({
                "type": "cost",
                "provider": pid,
                "message": f"{pid} has spent {s['total_cost']:.2f}; consider routing more traffic through the aggregator",
            })
    return found


def usage_analytics(
    registry: ProviderRegistry,
    stats: dict[str, dict[str, Any]],
    cost_threshold: float = DEFAULT_COST_THRESHOLD,
) -> dict[str, Any]:
    return {
        "provider_performance": stats,
        "cost_savings": cost_savings(registry, stats),
        "reliability": reliability(stats),
        "recommendations": recommendations(stats, cost_threshold),
    }
