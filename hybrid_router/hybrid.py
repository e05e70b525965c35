"""
HybridRouter: the public entry point.
Wires the registry, routing policy, health monitor, metrics and execution
engine together from a Config and exposes execute / collaborate / batch and
the reporting calls.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from .analytics import DEFAULT_COST_THRESHOLD, usage_analytics
from .clients import build_adapters
from .clients.base import AdapterKind, CanonicalRequest, CanonicalResponse, ProtocolAdapter
from .config import Config, load_config
from .engine import ExecutionEngine
from .errors import AllProvidersFailed
from .health import HealthMonitor
from .orchestration import CollaborationOrchestrator, CollaborationResult
from .ratelimit import RateLimiter
from .registry import ProviderRegistry
from .routing import OperationClass, OperationRouter
from .state import RouterState
from .stats import CostRates, MetricsLedger

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    successful: list[CanonicalResponse] = field(default_factory=list)
    failed: list[AllProvidersFailed] = field(default_factory=list)
    total_cost: float = 0.0


class HybridRouter:
    def __init__(
        self,
        config: Optional[Config] = None,
        adapters: Optional[dict[AdapterKind, ProtocolAdapter]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else load_config()
        self.registry = ProviderRegistry.from_config(self.config)
        self.router = OperationRouter(self.registry, self.config.routing)

        self._owns_adapters = adapters is None
        self.adapters = adapters if adapters is not None else build_adapters(timeout=self.config.request_timeout)

        health = HealthMonitor(
            self.registry,
            self.adapters,
            staleness_window=self.config.staleness_window,
            probe_interval=self.config.probe_interval,
            probe_timeout=self.config.request_timeout,
            clock=clock,
        )
        self.state = RouterState(
            health=health,
            metrics=MetricsLedger(self.registry.ids()),
            rate_limits=RateLimiter.from_registry(self.registry, window=self.config.rate_limit_window, clock=clock),
        )
        self.engine = ExecutionEngine(
            self.registry,
            self.router,
            self.adapters,
            self.state,
            rates=CostRates(self.config.input_rate, self.config.output_rate),
            max_retries=self.config.max_retries,
            backoff_base=self.config.backoff_base,
            request_timeout=self.config.request_timeout,
            sleep=sleep,
        )
        self.orchestrator = CollaborationOrchestrator(self.engine)
        self._stopped = False

    async def start(self):
        self._stopped = False
        self.state.health.start()
        logger.info("Hybrid router started with providers: %s", ", ".join(self.registry.ids()))

    async def stop(self):
        self._stopped = True
        await self.state.health.stop()
        if self._owns_adapters:
            for adapter in self.adapters.values():
                await adapter.aclose()

    async def __aenter__(self) -> "HybridRouter":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def _ensure_started(self):
        # Health records go stale without the probe loop, so a router used
        # outside ``async with`` starts it on first use.
        if not self._stopped and not self.state.health.running:
            logger.debug("Starting health probe loop on first use")
            self.state.health.start()

    async def execute(self, request: CanonicalRequest, timeout: Optional[float] = None) -> CanonicalResponse:
        self._ensure_started()
        return await self.engine.execute(request, timeout=timeout)

    async def collaborate(
        self,
        prompt: str,
        base_operation: Union[OperationClass, str] = OperationClass.STANDARD,
    ) -> CollaborationResult:
        self._ensure_started()
        return await self.orchestrator.collaborate(prompt, base_operation)

    async def process_batch(self, requests: list[CanonicalRequest]) -> BatchResult:
        """Run every request concurrently; exhausted requests land in ``failed``."""
        self._ensure_started()
        outcomes = await asyncio.gather(
            *(self.engine.execute(request) for request in requests),
            return_exceptions=True,
        )

        result = BatchResult()
        unexpected: Optional[BaseException] = None
        for outcome in outcomes:
            if isinstance(outcome, AllProvidersFailed):
                result.failed.append(outcome)
            elif isinstance(outcome, BaseException):
                if unexpected is None:
                    unexpected = outcome
            else:
                result.successful.append(outcome)
                result.total_cost += outcome.cost

        if unexpected is not None:
            raise unexpected

        logger.info(
            "Batch finished: %d succeeded, %d failed, cost %.6f",
            len(result.successful), len(result.failed), result.total_cost,
        )
        return result

    def get_provider_stats(self) -> dict[str, dict[str, Any]]:
        return self.state.provider_stats()

    def usage_analytics(self, cost_threshold: float = DEFAULT_COST_THRESHOLD) -> dict[str, Any]:
        return usage_analytics(self.registry, self.get_provider_stats(), cost_threshold)

    async def probe(self) -> dict[str, bool]:
        return await self.state.health.probe_all()

    def reset_stats(self):
        self.state.metrics.reset()
