"""
Operation classification and provider routing policy.

The policy encodes the cost/reliability tradeoff: critical work goes to
direct providers only, everything else tries the cost-optimized aggregator
first. Once a primary list is exhausted the engine escalates to the fallback
list, which is always the full set of direct providers.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from .errors import UnknownOperation

if TYPE_CHECKING:
    from .registry import ProviderRegistry


class OperationClass(Enum):
    CRITICAL = "critical"
    STANDARD = "standard"
    REAL_TIME = "real-time"
    EXPERIMENTAL = "experimental"

    @classmethod
    def parse(cls, value: Union["OperationClass", str]) -> "OperationClass":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        raise UnknownOperation(value)


FALLBACK_KEY = "fallback"


class OperationRouter:
    def __init__(
        self,
        registry: "ProviderRegistry",
        overrides: Optional[dict[str, list[str]]] = None,
    ):
        self.registry = registry
        self._routes = self._default_routes()
        self._fallback = [p.name for p in registry.direct()]

        for key, providers in (overrides or {}).items():
            if key == FALLBACK_KEY:
                self._fallback = list(providers)
            else:
                self._routes[OperationClass.parse(key)] = list(providers)

        for providers in [*self._routes.values(), self._fallback]:
            for provider_id in providers:
                registry.resolve(provider_id)

    def _default_routes(self) -> dict[OperationClass, list[str]]:
        aggregator = [p.name for p in self.registry.aggregators()][:1]
        direct = [p.name for p in self.registry.direct()]
        return {
            OperationClass.CRITICAL: direct[:2],
            OperationClass.REAL_TIME: aggregator + direct[:1],
            OperationClass.EXPERIMENTAL: aggregator or direct[:1],
            OperationClass.STANDARD: aggregator + direct[:1],
        }

    def candidates_for(self, operation: Union[OperationClass, str]) -> list[str]:
        return list(self._routes[OperationClass.parse(operation)])

    def fallback_candidates_for(self, operation: Union[OperationClass, str]) -> list[str]:
        OperationClass.parse(operation)
        return list(self._fallback)

    def describe(self) -> dict[str, list[str]]:
        routes = {op.value: list(providers) for op, providers in self._routes.items()}
        routes[FALLBACK_KEY] = list(self._fallback)
        return routes
