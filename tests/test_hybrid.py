import asyncio

import pytest
import pytest_asyncio

from hybrid_router import HybridRouter
from hybrid_router.config import Config
from hybrid_router.errors import AllProvidersFailed, UpstreamError

from conftest import FakeClock, RecordingSleep, make_request, ok


@pytest_asyncio.fixture
async def router(adapters):
    router = HybridRouter(Config(), adapters=adapters, sleep=RecordingSleep(), clock=FakeClock())
    yield router
    await router.stop()


@pytest.mark.asyncio
async def test_execute_and_stats(router):
    response = await router.execute(make_request())

    stats = router.get_provider_stats()
    assert response.provider == "aimlapi"
    assert set(stats) == {"aimlapi", "openai", "anthropic", "google"}
    assert stats["aimlapi"]["success_count"] == 1
    assert stats["aimlapi"]["total_cost"] == response.cost
    assert stats["aimlapi"]["success_rate"] == 1.0
    assert stats["aimlapi"]["health"]["effective"] is True
    assert stats["openai"]["success_rate"] is None


@pytest.mark.asyncio
async def test_process_batch(router, fake):
    async def reject_bad_model(descriptor, request):
        if request.model == "bad":
            await asyncio.sleep(0.01)
            raise UpstreamError(404, "model not found", descriptor.name)
        return ok()

    for pid in ("aimlapi", "openai", "anthropic", "google"):
        fake.always(pid, reject_bad_model)

    batch = await router.process_batch([make_request(), make_request(model="bad"), make_request()])

    assert len(batch.successful) == 2
    assert len(batch.failed) == 1
    assert isinstance(batch.failed[0], AllProvidersFailed)
    assert batch.failed[0].model == "bad"
    assert batch.total_cost == pytest.approx(sum(r.cost for r in batch.successful))


@pytest.mark.asyncio
async def test_usage_analytics(router, fake):
    fake.script("openai", UpstreamError(500, "boom"))

    cheap = await router.execute(make_request(operation="standard"))
    direct = await router.execute(make_request(operation="critical"))
    assert direct.provider == "anthropic"

    analytics = router.usage_analytics()

    savings = analytics["cost_savings"]
    assert savings["actual_cost"] == pytest.approx(cheap.cost + direct.cost)
    assert savings["estimated_direct_cost"] == pytest.approx(cheap.cost / 0.3 + direct.cost)
    assert savings["savings"] == pytest.approx(cheap.cost / 0.3 - cheap.cost)
    assert 0 < savings["savings_percentage"] < 70

    reliability = analytics["reliability"]
    assert reliability["openai"] == {"success_rate": 0.0, "healthy": False, "total_requests": 1}
    assert reliability["google"]["success_rate"] is None

    recommendations = analytics["recommendations"]
    assert [(r["type"], r["provider"]) for r in recommendations] == [("reliability", "openai")]
    assert analytics["provider_performance"] == router.get_provider_stats()


@pytest.mark.asyncio
async def test_cost_recommendation_threshold(router):
    await router.execute(make_request())

    recommendations = router.usage_analytics(cost_threshold=0.0)["recommendations"]

    assert [(r["type"], r["provider"]) for r in recommendations] == [("cost", "aimlapi")]


@pytest.mark.asyncio
async def test_analytics_without_traffic(router):
    savings = router.usage_analytics()["cost_savings"]
    assert savings["actual_cost"] == 0.0
    assert savings["savings_percentage"] is None


@pytest.mark.asyncio
async def test_reset_stats(router):
    await router.execute(make_request())

    router.reset_stats()

    assert all(s["success_count"] == 0 for s in router.get_provider_stats().values())


@pytest.mark.asyncio
async def test_probe(router, fake):
    fake.script("google", UpstreamError(503, "down"))

    results = await router.probe()

    assert results["google"] is False
    assert results["openai"] is True
    assert router.get_provider_stats()["google"]["health"]["healthy"] is False


@pytest.mark.asyncio
async def test_lifecycle_leaves_injected_adapters_open(router, fake):
    async with router:
        assert router.state.health.running

    assert not router.state.health.running
    assert fake.closed is False


@pytest.mark.asyncio
async def test_lifecycle_with_owned_adapters():
    router = HybridRouter(Config())

    await router.start()
    await router.stop()

    assert not router.state.health.running


@pytest.mark.asyncio
async def test_collaborate(router):
    result = await router.collaborate("Summarise the meeting", "critical")

    assert result.confidence == 1.0
    assert set(result.providers_used) == {"openai", "aimlapi"}


@pytest.mark.asyncio
async def test_first_execute_starts_health_loop(adapters):
    clock = FakeClock()
    router = HybridRouter(Config(probe_interval=0.01), adapters=adapters, sleep=RecordingSleep(), clock=clock)
    try:
        assert not router.state.health.running
        await router.execute(make_request())
        assert router.state.health.running

        clock.advance(301)
        assert not router.state.health.is_healthy("aimlapi")
        for _ in range(100):
            await asyncio.sleep(0.01)
            if router.state.health.is_healthy("aimlapi"):
                break

        response = await router.execute(make_request())
        assert response.provider == "aimlapi"
    finally:
        await router.stop()


@pytest.mark.asyncio
async def test_stopped_router_does_not_restart_health_loop(router):
    await router.start()
    await router.stop()

    await router.execute(make_request())

    assert not router.state.health.running


@pytest.mark.asyncio
async def test_rate_limited_model_goes_to_next_provider(adapters, fake):
    config = Config()
    config.providers["aimlapi"].rate_limits = {"gpt-5": 1}
    router = HybridRouter(config, adapters=adapters, sleep=RecordingSleep(), clock=FakeClock())
    try:
        first = await router.execute(make_request())
        second = await router.execute(make_request())
    finally:
        await router.stop()

    assert first.provider == "aimlapi"
    assert second.provider == "openai"
    stats = router.get_provider_stats()
    assert stats["aimlapi"]["error_count"] == 0
    assert stats["aimlapi"]["average_latency"] is not None
