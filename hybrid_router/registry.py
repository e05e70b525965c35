"""
Provider registry: the immutable catalog of upstream providers.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .clients.base import AdapterKind
from .config import Config
from .errors import ConfigError, UnknownProvider


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    kind: AdapterKind
    base_url: str
    api_key: Optional[str] = None
    models: Mapping[str, str] = field(default_factory=dict)
    cost_multiplier: float = 1.0
    aggregator: bool = False
    probe_model: Optional[str] = None
    rate_limits: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ConfigError("provider name must not be empty")
        if not self.base_url:
            raise ConfigError(f"provider '{self.name}' has no base_url")
        if not self.cost_multiplier > 0:
            raise ConfigError(
                f"provider '{self.name}' cost_multiplier must be positive, got {self.cost_multiplier}"
            )
        if not isinstance(self.kind, AdapterKind):
            try:
                object.__setattr__(self, "kind", AdapterKind(self.kind))
            except ValueError as e:
                raise ConfigError(f"provider '{self.name}' has unknown kind {self.kind!r}") from e
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))
        for model, limit in self.rate_limits.items():
            if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
                raise ConfigError(
                    f"provider '{self.name}' rate limit for '{model}' must be a positive integer, got {limit!r}"
                )
        object.__setattr__(self, "rate_limits", MappingProxyType(dict(self.rate_limits)))

    def native_model(self, canonical_model: str) -> str:
        return self.models.get(canonical_model, canonical_model)

    def health_probe_model(self) -> str:
        if self.probe_model:
            return self.probe_model
        return next(iter(self.models), "health-check")


class ProviderRegistry:
    def __init__(self, descriptors: list[ProviderDescriptor]):
        self._providers: dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in self._providers:
                raise ConfigError(f"provider '{descriptor.name}' registered twice")
            self._providers[descriptor.name] = descriptor

    @classmethod
    def from_config(cls, config: Config) -> "ProviderRegistry":
        descriptors = [
            ProviderDescriptor(
                name=name,
                kind=pc.kind,
                base_url=pc.base_url or "",
                api_key=pc.resolve_api_key(),
                models=pc.models,
                cost_multiplier=pc.cost_multiplier,
                aggregator=pc.aggregator,
                probe_model=pc.probe_model,
                rate_limits=pc.rate_limits,
            )
            for name, pc in config.providers.items()
        ]
        return cls(descriptors)

    def resolve(self, provider_id: str) -> ProviderDescriptor:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise UnknownProvider(provider_id) from None

    def native_model_for(self, provider_id: str, canonical_model: str) -> str:
        return self.resolve(provider_id).native_model(canonical_model)

    def ids(self) -> list[str]:
        return list(self._providers)

    def aggregators(self) -> list[ProviderDescriptor]:
        return [p for p in self._providers.values() if p.aggregator]

    def direct(self) -> list[ProviderDescriptor]:
        return [p for p in self._providers.values() if not p.aggregator]

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers
