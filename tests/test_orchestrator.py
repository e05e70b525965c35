import asyncio

import pytest

from hybrid_router.errors import CollaborationFailed, UpstreamError
from hybrid_router.orchestration import (
    CollaborationOrchestrator,
    CollaborationRole,
    get_role_by_name,
    get_role_definition,
)
from hybrid_router.routing import OperationClass

from conftest import ok


async def only_gemini(descriptor, request):
    if "gemini" in request.model:
        return ok(text="quick take")
    # failures land after the fast role has already finished
    await asyncio.sleep(0.01)
    raise UpstreamError(500, "model unavailable", descriptor.name)


@pytest.mark.asyncio
async def test_all_roles_succeed(engine, fake):
    orchestrator = CollaborationOrchestrator(engine)

    result = await orchestrator.collaborate("Plan the launch")

    assert result.confidence == 1.0
    assert set(result.responses) == set(CollaborationRole)
    assert result.total_cost == pytest.approx(sum(r.cost for r in result.responses.values()))
    assert result.providers_used == ["aimlapi"]

    synthesis = result.synthesis
    assert synthesis.index("### Reasoning") < synthesis.index("### Accuracy") < synthesis.index("### Speed")

    sent = {request.model: request for _, request in fake.calls}
    assert set(sent) == {"openai/gpt-5", "anthropic/claude-4.5-sonnet", "google/gemini-2.5-flash"}
    reasoning = sent["openai/gpt-5"]
    assert reasoning.messages[0].content == "You are the reasoning AI in a triple-AI collaboration."
    assert reasoning.messages[1].content == "Plan the launch\n\nProvide comprehensive reasoning and analysis."
    assert reasoning.temperature == 0.7
    assert reasoning.max_tokens == 2000


@pytest.mark.asyncio
async def test_partial_failure_is_tolerated(engine, fake):
    for pid in ("aimlapi", "openai", "anthropic", "google"):
        fake.always(pid, only_gemini)

    result = await CollaborationOrchestrator(engine).collaborate("Assess the risk")

    assert result.confidence == pytest.approx(1 / 3)
    assert list(result.responses) == [CollaborationRole.SPEED]
    assert {r.role for r in result.failed} == {CollaborationRole.REASONING, CollaborationRole.ACCURACY}
    assert result.total_cost == result.responses[CollaborationRole.SPEED].cost
    assert "### Speed" in result.synthesis
    assert "### Reasoning" not in result.synthesis
    assert "1/3 roles answered" in result.summary


@pytest.mark.asyncio
async def test_all_roles_fail(engine, fake):
    for pid in ("aimlapi", "openai", "anthropic", "google"):
        fake.always(pid, UpstreamError(503, "down"))

    with pytest.raises(CollaborationFailed) as exc_info:
        await CollaborationOrchestrator(engine).collaborate("Anything")

    assert set(exc_info.value.errors) == {"reasoning", "accuracy", "speed"}


@pytest.mark.asyncio
async def test_unexpected_error_is_reraised(engine, fake):
    async def broken(descriptor, request):
        if "gpt-5" in request.model:
            raise RuntimeError("bug in adapter")
        return ok()

    fake.always("aimlapi", broken)

    with pytest.raises(RuntimeError):
        await CollaborationOrchestrator(engine).collaborate("Anything")


def test_operation_per_role(engine):
    orchestrator = CollaborationOrchestrator(engine)
    reasoning = get_role_definition(CollaborationRole.REASONING)
    speed = get_role_definition(CollaborationRole.SPEED)

    assert orchestrator.build_request(reasoning, "p", OperationClass.CRITICAL).operation is OperationClass.CRITICAL
    assert orchestrator.build_request(reasoning, "p", OperationClass.REAL_TIME).operation is OperationClass.STANDARD
    assert orchestrator.build_request(speed, "p", OperationClass.CRITICAL).operation is OperationClass.STANDARD


@pytest.mark.asyncio
async def test_critical_collaboration_keeps_expensive_roles_off_the_aggregator(engine, fake):
    await CollaborationOrchestrator(engine).collaborate("Audit this", OperationClass.CRITICAL)

    by_model = {request.model: name for name, request in fake.calls}
    assert by_model["gpt-5"] == "openai"
    # openai has no mapping for the claude model, so the canonical name goes out unchanged
    assert by_model["claude-4.5-sonnet"] == "openai"
    assert by_model["google/gemini-2.5-flash"] == "aimlapi"


def test_role_lookup():
    assert get_role_by_name("Accuracy") is CollaborationRole.ACCURACY
    assert get_role_by_name("speed") is CollaborationRole.SPEED
    assert get_role_by_name("nobody") is None


@pytest.mark.asyncio
async def test_each_role_is_timed_separately(engine, fake):
    async def slow_reasoning(descriptor, request):
        if "gpt-5" in request.model:
            await asyncio.sleep(0.2)
        return ok()

    fake.always("aimlapi", slow_reasoning)

    result = await CollaborationOrchestrator(engine).collaborate("Plan the launch")

    times = {r.role: r.execution_time for r in result.results}
    assert times[CollaborationRole.REASONING] >= 0.15
    assert times[CollaborationRole.SPEED] < 0.1
    assert times[CollaborationRole.ACCURACY] < 0.1
