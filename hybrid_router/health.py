"""
Provider health tracking with a staleness window and periodic active probes.
"""

import asyncio
import contextlib
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .clients.base import AdapterKind, CanonicalRequest, Message, ProtocolAdapter, Role
from .errors import UnknownProvider, UpstreamError
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

PROBE_PROMPT = "Health check"
PROBE_MAX_TOKENS = 10


@dataclass
class HealthRecord:
    healthy: bool
    last_checked_at: float


class HealthMonitor:
    """Tracks whether each provider may receive traffic.

    A record is only trusted for ``staleness_window`` seconds; after that the
    provider counts as unhealthy until an attempt or probe refreshes it. Every
    provider starts out healthy.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: dict[AdapterKind, ProtocolAdapter],
        staleness_window: float = 300.0,
        probe_interval: float = 60.0,
        probe_timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.adapters = adapters
        self.staleness_window = staleness_window
        self.probe_interval = probe_interval
        self.probe_timeout = probe_timeout
        self.clock = clock

        self._lock = threading.Lock()
        now = clock()
        self._records: dict[str, HealthRecord] = {
            pid: HealthRecord(healthy=True, last_checked_at=now) for pid in registry.ids()
        }
        self._task: Optional[asyncio.Task] = None

    def _get(self, provider_id: str) -> HealthRecord:
        record = self._records.get(provider_id)
        if record is None:
            raise UnknownProvider(provider_id)
        return record

    def is_healthy(self, provider_id: str) -> bool:
        with self._lock:
            record = self._get(provider_id)
            return record.healthy and (self.clock() - record.last_checked_at) < self.staleness_window

    def _set(self, provider_id: str, healthy: bool):
        with self._lock:
            record = self._get(provider_id)
            if record.healthy != healthy:
                logger.info("Provider %s marked %s", provider_id, "healthy" if healthy else "unhealthy")
            record.healthy = healthy
            record.last_checked_at = self.clock()

    def mark_healthy(self, provider_id: str):
        self._set(provider_id, True)

    def mark_unhealthy(self, provider_id: str):
        self._set(provider_id, False)

    def record(self, provider_id: str) -> HealthRecord:
        with self._lock:
            return replace(self._get(provider_id))

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            now = self.clock()
            return {
                pid: {
                    "healthy": r.healthy,
                    "last_checked_at": r.last_checked_at,
                    "effective": r.healthy and (now - r.last_checked_at) < self.staleness_window,
                }
                for pid, r in self._records.items()
            }

    async def probe_provider(self, provider_id: str) -> bool:
        descriptor = self.registry.resolve(provider_id)
        adapter = self.adapters[descriptor.kind]
        request = CanonicalRequest(
            model=descriptor.native_model(descriptor.health_probe_model()),
            messages=[Message(role=Role.USER, content=PROBE_PROMPT)],
            temperature=0.0,
            max_tokens=PROBE_MAX_TOKENS,
        )

        try:
            await asyncio.wait_for(adapter.invoke(descriptor, request), self.probe_timeout)
        except UpstreamError as e:
            logger.warning("Health probe failed for %s: %s", provider_id, e)
            self.mark_unhealthy(provider_id)
            return False
        except asyncio.TimeoutError:
            logger.warning("Health probe timed out for %s after %.1fs", provider_id, self.probe_timeout)
            self.mark_unhealthy(provider_id)
            return False
        except Exception:
            logger.exception("Unexpected error while probing %s", provider_id)
            self.mark_unhealthy(provider_id)
            return False

        self.mark_healthy(provider_id)
        return True

    async def probe_all(self) -> dict[str, bool]:
        provider_ids = self.registry.ids()
        results = await asyncio.gather(*(self.probe_provider(pid) for pid in provider_ids))
        return dict(zip(provider_ids, results))

    async def _run(self):
        while True:
            await asyncio.sleep(self.probe_interval)
            try:
                results = await self.probe_all()
            except Exception:
                logger.exception("Health probe round failed")
                continue
            logger.debug("Health probe round: %s", results)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the periodic probe loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
