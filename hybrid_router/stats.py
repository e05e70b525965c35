"""
Per-provider call statistics and cost accounting.
"""

import threading
from dataclasses import dataclass, replace
from typing import Optional

from .clients.base import TokenUsage


@dataclass(frozen=True)
class CostRates:
    """Base prices in currency units per million tokens."""

    input_rate: float = 1.0
    output_rate: float = 3.0


def compute_cost(usage: TokenUsage, cost_multiplier: float, rates: CostRates = CostRates()) -> float:
    input_cost = (usage.prompt_tokens / 1_000_000) * rates.input_rate * cost_multiplier
    output_cost = (usage.completion_tokens / 1_000_000) * rates.output_rate * cost_multiplier
    return input_cost + output_cost


LATENCY_WINDOW = 100


@dataclass
class ProviderMetrics:
    success_count: int = 0
    error_count: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    recent_latencies: tuple[float, ...] = ()

    @property
    def total_requests(self) -> int:
        return self.success_count + self.error_count

    @property
    def success_rate(self) -> Optional[float]:
        if self.total_requests == 0:
            return None
        return self.success_count / self.total_requests

    @property
    def average_latency(self) -> Optional[float]:
        """Mean response time in seconds over the last LATENCY_WINDOW successful calls."""
        if not self.recent_latencies:
            return None
        return sum(self.recent_latencies) / len(self.recent_latencies)


class MetricsLedger:
    def __init__(self, provider_ids: list[str]):
        self._lock = threading.Lock()
        self._metrics: dict[str, ProviderMetrics] = {pid: ProviderMetrics() for pid in provider_ids}

    def record_success(self, provider_id: str, cost: float = 0.0, tokens: int = 0, latency: Optional[float] = None):
        with self._lock:
            metrics = self._metrics.setdefault(provider_id, ProviderMetrics())
            metrics.success_count += 1
            metrics.total_cost += cost
            metrics.total_tokens += tokens
            if latency is not None:
                metrics.recent_latencies = (metrics.recent_latencies + (latency,))[-LATENCY_WINDOW:]

    def record_error(self, provider_id: str):
        with self._lock:
            self._metrics.setdefault(provider_id, ProviderMetrics()).error_count += 1

    def get(self, provider_id: str) -> ProviderMetrics:
        with self._lock:
            return replace(self._metrics.get(provider_id, ProviderMetrics()))

    def snapshot(self) -> dict[str, ProviderMetrics]:
        with self._lock:
            return {pid: replace(m) for pid, m in self._metrics.items()}

    def reset(self):
        with self._lock:
            for pid in self._metrics:
                self._metrics[pid] = ProviderMetrics()

    def get_summary(self) -> str:
        snapshot = self.snapshot()
        total_calls = sum(m.total_requests for m in snapshot.values())
        total_cost = sum(m.total_cost for m in snapshot.values())
        lines = [
            "Provider call statistics:",
            f"  Total calls: {total_calls}",
            f"  Total cost: ${total_cost:.6f}",
        ]
        for pid, m in snapshot.items():
            rate = "n/a" if m.success_rate is None else f"{m.success_rate:.0%}"
            lines.append(f"    {pid}: {m.success_count} ok / {m.error_count} failed ({rate}), ${m.total_cost:.6f}")
        return "\n".join(lines)
