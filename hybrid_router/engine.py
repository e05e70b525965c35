"""
Request execution engine: retry and failover across providers.

Candidates are tried one at a time in the order the operation router gives
them; the first success wins. When a whole pass fails, the next pass uses the
fallback list after an exponential backoff. Every attempt updates metrics and
health exactly once.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from .clients.base import AdapterKind, CanonicalRequest, CanonicalResponse, ProtocolAdapter
from .errors import AllProvidersFailed, ConfigError, DeadlineExceeded, UpstreamError
from .registry import ProviderRegistry
from .routing import OperationRouter
from .state import RouterState
from .stats import CostRates, compute_cost

logger = logging.getLogger(__name__)


class ExecutionEngine:
    def __init__(
        self,
        registry: ProviderRegistry,
        router: OperationRouter,
        adapters: dict[AdapterKind, ProtocolAdapter],
        state: RouterState,
        rates: CostRates = CostRates(),
        max_retries: int = 3,
        backoff_base: float = 1.0,
        request_timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 1:
            raise ConfigError(f"max_retries must be at least 1, got {max_retries}")
        self.registry = registry
        self.router = router
        self.adapters = adapters
        self.state = state
        self.rates = rates
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.request_timeout = request_timeout
        self.sleep = sleep

    async def execute(self, request: CanonicalRequest, timeout: Optional[float] = None) -> CanonicalResponse:
        """Run ``request`` against the routed providers until one succeeds.

        ``timeout`` bounds the whole call, backoff included. Raises
        AllProvidersFailed (or DeadlineExceeded) when nothing succeeded.
        """
        operation = request.operation
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        candidates = self.router.candidates_for(operation)
        attempted: list[str] = []
        errors: dict[str, UpstreamError] = {}
        last_error: Optional[UpstreamError] = None

        def failure(cls=AllProvidersFailed) -> AllProvidersFailed:
            return cls(last_error, attempted, errors, operation=operation.value, model=request.model)

        for attempt in range(self.max_retries):
            for provider_id in candidates:
                if not self.state.health.is_healthy(provider_id):
                    logger.debug("Provider %s unhealthy, skipping", provider_id)
                    continue

                limiter = self.state.rate_limits
                if limiter is not None and not limiter.allow(provider_id, request.model):
                    logger.debug("Provider %s is over its rate limit for %s, skipping", provider_id, request.model)
                    continue

                call_timeout = self.request_timeout
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        raise failure(DeadlineExceeded)
                    call_timeout = min(call_timeout, remaining)

                if provider_id not in attempted:
                    attempted.append(provider_id)
                if limiter is not None:
                    limiter.record(provider_id, request.model)

                try:
                    response, latency = await self._attempt(provider_id, request, call_timeout)
                except UpstreamError as e:
                    last_error = e
                    errors[provider_id] = e
                    self.state.metrics.record_error(provider_id)
                    self.state.health.mark_unhealthy(provider_id)
                    logger.warning(
                        "Provider %s failed (attempt %d/%d): %s",
                        provider_id, attempt + 1, self.max_retries, e,
                    )
                    continue

                self.state.metrics.record_success(
                    provider_id, response.cost, response.usage.total_tokens, latency=latency,
                )
                self.state.health.mark_healthy(provider_id)
                return response

            if attempt < self.max_retries - 1:
                candidates = self.router.fallback_candidates_for(operation)
                delay = self.backoff_base * (2 ** attempt)
                if deadline is not None and loop.time() + delay >= deadline:
                    raise failure(DeadlineExceeded)
                logger.info(
                    "No provider succeeded on attempt %d, escalating to fallback %s in %.1fs",
                    attempt + 1, candidates, delay,
                )
                await self.sleep(delay)

        error = failure()
        logger.error("%s", error)
        raise error

    async def _attempt(
        self, provider_id: str, request: CanonicalRequest, timeout: float,
    ) -> tuple[CanonicalResponse, float]:
        descriptor = self.registry.resolve(provider_id)
        adapter = self.adapters.get(descriptor.kind)
        if adapter is None:
            raise ConfigError(f"No adapter registered for kind {descriptor.kind.value}")

        native_request = replace(request, model=descriptor.native_model(request.model))
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            response = await asyncio.wait_for(adapter.invoke(descriptor, native_request), timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamError(None, f"timed out after {timeout:.1f}s", provider_id) from e

        cost = compute_cost(response.usage, descriptor.cost_multiplier, self.rates)
        return replace(response, provider=provider_id, cost=cost), loop.time() - started
