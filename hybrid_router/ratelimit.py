"""
Per-provider, per-model request quotas over a fixed window.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping

DEFAULT_WINDOW = 60.0


@dataclass
class QuotaWindow:
    limit: int
    used: int
    started_at: float


class RateLimiter:
    """Counts dispatched requests against ``limits[provider][canonical_model]``.

    A model without a configured limit is never throttled. Counters reset once
    ``window`` seconds have passed since the window opened.
    """

    def __init__(
        self,
        limits: Mapping[str, Mapping[str, int]],
        window: float = DEFAULT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self.clock = clock
        self._lock = threading.Lock()
        now = clock()
        self._windows: dict[tuple[str, str], QuotaWindow] = {
            (provider_id, model): QuotaWindow(limit=limit, used=0, started_at=now)
            for provider_id, models in limits.items()
            for model, limit in models.items()
        }

    @classmethod
    def from_registry(cls, registry, window: float = DEFAULT_WINDOW, clock: Callable[[], float] = time.monotonic):
        return cls({p.name: p.rate_limits for p in registry}, window=window, clock=clock)

    def _current(self, key: tuple[str, str]):
        quota = self._windows.get(key)
        if quota is not None:
            now = self.clock()
            if now - quota.started_at >= self.window:
                quota.used = 0
                quota.started_at = now
        return quota

    def allow(self, provider_id: str, model: str) -> bool:
        with self._lock:
            quota = self._current((provider_id, model))
            return quota is None or quota.used < quota.limit

    def record(self, provider_id: str, model: str):
        with self._lock:
            quota = self._current((provider_id, model))
            if quota is not None:
                quota.used += 1

    def remaining(self, provider_id: str, model: str):
        with self._lock:
            quota = self._current((provider_id, model))
            return None if quota is None else max(quota.limit - quota.used, 0)
