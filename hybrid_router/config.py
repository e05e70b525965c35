"""
Configuration management for Hybrid Router.
Supports a ~/.hybrid-router YAML file for provider credentials, model maps,
routing overrides, pricing and retry settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError


@dataclass
class ProviderConfig:
    name: str
    kind: str = "openai_compatible"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    api_key_env: Optional[str] = None
    models: dict[str, str] = field(default_factory=dict)
    cost_multiplier: float = 1.0
    aggregator: bool = False
    probe_model: Optional[str] = None
    rate_limits: dict[str, int] = field(default_factory=dict)

    def resolve_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None


@dataclass
class Config:
    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    routing: dict[str, list[str]] = field(default_factory=dict)
    input_rate: float = 1.0
    output_rate: float = 3.0
    max_retries: int = 3
    backoff_base: float = 1.0
    request_timeout: float = 10.0
    rate_limit_window: float = 60.0
    staleness_window: float = 300.0
    probe_interval: float = 60.0
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.providers:
            self.providers = self._get_default_providers()

    def _get_default_providers(self) -> dict[str, ProviderConfig]:
        return {
            "aimlapi": ProviderConfig(
                name="aimlapi",
                kind="openai_compatible",
                base_url="https://api.aimlapi.com/v1",
                api_key_env="AIMLAPI_API_KEY",
                models={
                    "gpt-5": "openai/gpt-5",
                    "gpt-4.1": "openai/gpt-4.1",
                    "claude-4.5-sonnet": "anthropic/claude-4.5-sonnet",
                    "gemini-2.5-flash": "google/gemini-2.5-flash",
                    "deepseek-r1": "deepseek/deepseek-r1",
                },
                cost_multiplier=0.3,
                aggregator=True,
            ),
            "openai": ProviderConfig(
                name="openai",
                kind="openai_compatible",
                base_url="https://api.openai.com/v1",
                api_key_env="OPENAI_API_KEY",
                models={
                    "gpt-5": "gpt-5",
                    "gpt-4.1": "gpt-4.1-preview",
                    "gpt-4o": "gpt-4o",
                },
            ),
            "anthropic": ProviderConfig(
                name="anthropic",
                kind="anthropic",
                base_url="https://api.anthropic.com/v1",
                api_key_env="ANTHROPIC_API_KEY",
                models={
                    "claude-4.5-sonnet": "claude-3-5-sonnet-20241022",
                    "claude-3.5-haiku": "claude-3-5-haiku-20241022",
                },
            ),
            "google": ProviderConfig(
                name="google",
                kind="google",
                base_url="https://generativelanguage.googleapis.com/v1beta",
                api_key_env="GOOGLE_API_KEY",
                models={
                    "gemini-2.5-flash": "gemini-2.0-flash-exp",
                    "gemini-pro": "gemini-1.5-pro",
                },
            ),
        }


CONFIG_FILE_NAME = ".hybrid-router"
CONFIG_ENV_VAR = "HYBRID_ROUTER_CONFIG"


def get_config_path() -> Path:
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> Config:
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")
    return parse_config(data)


def _number(section: dict, key: str, default: float, cast=float) -> Any:
    value = section.get(key, default)
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from e


def _rate_limits(provider: str, value: Any) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"provider '{provider}': rate_limits must map canonical models to request counts")
    limits = {}
    for model, limit in value.items():
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ConfigError(f"provider '{provider}': rate limit for '{model}' must be a positive integer")
        limits[str(model)] = limit
    return limits


def parse_config(data: dict) -> Config:
    providers = {}

    for name, provider_data in (data.get("providers") or {}).items():
        provider_data = provider_data or {}
        if not isinstance(provider_data, dict):
            raise ConfigError(f"provider '{name}' must be a mapping")
        models = provider_data.get("models") or {}
        if not isinstance(models, dict):
            raise ConfigError(f"provider '{name}': models must map canonical names to native names")
        providers[name] = ProviderConfig(
            name=name,
            kind=provider_data.get("kind", "openai_compatible"),
            base_url=provider_data.get("base_url"),
            api_key=provider_data.get("api_key"),
            api_key_env=provider_data.get("api_key_env"),
            models={str(k): str(v) for k, v in models.items()},
            cost_multiplier=_number(provider_data, "cost_multiplier", 1.0),
            aggregator=bool(provider_data.get("aggregator", False)),
            probe_model=provider_data.get("probe_model"),
            rate_limits=_rate_limits(name, provider_data.get("rate_limits")),
        )

    routing = {}
    for operation, provider_ids in (data.get("routing") or {}).items():
        if not isinstance(provider_ids, list):
            raise ConfigError(f"routing '{operation}' must be a list of provider ids")
        routing[str(operation)] = [str(p) for p in provider_ids]

    pricing = data.get("pricing") or {}
    execution = data.get("execution") or {}
    health = data.get("health") or {}

    return Config(
        providers=providers,
        routing=routing,
        input_rate=_number(pricing, "input_rate", 1.0),
        output_rate=_number(pricing, "output_rate", 3.0),
        max_retries=_number(execution, "max_retries", 3, int),
        backoff_base=_number(execution, "backoff_base", 1.0),
        request_timeout=_number(execution, "request_timeout", 10.0),
        rate_limit_window=_number(execution, "rate_limit_window", 60.0),
        staleness_window=_number(health, "staleness_window", 300.0),
        probe_interval=_number(health, "probe_interval", 60.0),
        log_level=str(data.get("log_level", "INFO")),
    )


SAMPLE_CONFIG = """# Hybrid Router Configuration
# Copy this file to ~/.hybrid-router (or point HYBRID_ROUTER_CONFIG at it)

log_level: INFO

# Per-million-token base rates; each provider's cost_multiplier scales them
pricing:
  input_rate: 1.0
  output_rate: 3.0

execution:
  max_retries: 3
  backoff_base: 1.0      # seconds; attempt n waits backoff_base * 2^n
  request_timeout: 10.0  # seconds per provider call
  rate_limit_window: 60.0  # seconds; per-model rate_limits reset every window

health:
  staleness_window: 300.0
  probe_interval: 60.0

# Each provider needs: kind, base_url, and api_key or api_key_env
# kind: openai_compatible | anthropic | google
providers:
  aimlapi:
    kind: openai_compatible
    base_url: "https://api.aimlapi.com/v1"
    api_key_env: AIMLAPI_API_KEY
    aggregator: true
    cost_multiplier: 0.3
    models:
      gpt-5: openai/gpt-5
      claude-4.5-sonnet: anthropic/claude-4.5-sonnet
      gemini-2.5-flash: google/gemini-2.5-flash
    # requests per rate_limit_window; unlisted models are not throttled
    rate_limits:
      gpt-5: 100
      claude-4.5-sonnet: 50

  openai:
    kind: openai_compatible
    base_url: "https://api.openai.com/v1"
    api_key_env: OPENAI_API_KEY
    models:
      gpt-5: gpt-5
      gpt-4o: gpt-4o

  anthropic:
    kind: anthropic
    base_url: "https://api.anthropic.com/v1"
    api_key_env: ANTHROPIC_API_KEY
    models:
      claude-4.5-sonnet: claude-3-5-sonnet-20241022

  google:
    kind: google
    base_url: "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: GOOGLE_API_KEY
    models:
      gemini-2.5-flash: gemini-2.0-flash-exp

# Optional routing overrides (defaults are derived from the aggregator flag)
# routing:
#   critical: [openai, anthropic]
#   fallback: [openai, anthropic, google]
"""


def create_sample_config(path: Optional[Path] = None) -> Optional[Path]:
    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        return None

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(SAMPLE_CONFIG)
    return config_path
