from hybrid_router.config import Config
from hybrid_router.ratelimit import RateLimiter
from hybrid_router.registry import ProviderRegistry

from conftest import FakeClock


def test_unlimited_model_is_always_allowed():
    limiter = RateLimiter({"aimlapi": {"gpt-5": 1}}, clock=FakeClock())

    for _ in range(5):
        limiter.record("aimlapi", "gemini-2.5-flash")
        limiter.record("openai", "gpt-5")

    assert limiter.allow("aimlapi", "gemini-2.5-flash")
    assert limiter.allow("openai", "gpt-5")
    assert limiter.remaining("openai", "gpt-5") is None


def test_quota_exhausts_and_resets_with_window():
    clock = FakeClock()
    limiter = RateLimiter({"aimlapi": {"gpt-5": 2}}, window=60.0, clock=clock)

    limiter.record("aimlapi", "gpt-5")
    assert limiter.remaining("aimlapi", "gpt-5") == 1
    limiter.record("aimlapi", "gpt-5")
    assert not limiter.allow("aimlapi", "gpt-5")

    clock.advance(59)
    assert not limiter.allow("aimlapi", "gpt-5")

    clock.advance(1)
    assert limiter.allow("aimlapi", "gpt-5")
    assert limiter.remaining("aimlapi", "gpt-5") == 2


def test_from_registry_reads_provider_limits():
    config = Config()
    config.providers["aimlapi"].rate_limits = {"claude-4.5-sonnet": 1}
    limiter = RateLimiter.from_registry(ProviderRegistry.from_config(config), clock=FakeClock())

    limiter.record("aimlapi", "claude-4.5-sonnet")

    assert not limiter.allow("aimlapi", "claude-4.5-sonnet")
    assert limiter.allow("aimlapi", "gpt-5")
