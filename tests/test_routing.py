import pytest

from hybrid_router.errors import UnknownOperation, UnknownProvider
from hybrid_router.routing import OperationClass, OperationRouter

from conftest import make_request


def test_default_routes(registry):
    router = OperationRouter(registry)

    assert router.candidates_for(OperationClass.CRITICAL) == ["openai", "anthropic"]
    assert router.candidates_for(OperationClass.STANDARD) == ["aimlapi", "openai"]
    assert router.candidates_for(OperationClass.REAL_TIME) == ["aimlapi", "openai"]
    assert router.candidates_for(OperationClass.EXPERIMENTAL) == ["aimlapi"]


def test_fallback_is_every_direct_provider(registry):
    router = OperationRouter(registry)

    for operation in OperationClass:
        assert router.fallback_candidates_for(operation) == ["openai", "anthropic", "google"]


def test_candidates_are_deterministic(registry):
    router = OperationRouter(registry)

    assert router.candidates_for("standard") == router.candidates_for("standard")
    assert router.candidates_for("standard") == OperationRouter(registry).candidates_for("standard")


def test_returned_lists_are_copies(registry):
    router = OperationRouter(registry)

    router.candidates_for("critical").append("google")
    router.fallback_candidates_for("critical").clear()

    assert router.candidates_for("critical") == ["openai", "anthropic"]
    assert router.fallback_candidates_for("critical") == ["openai", "anthropic", "google"]


def test_critical_never_routes_through_aggregator(registry):
    router = OperationRouter(registry)

    assert "aimlapi" not in router.candidates_for("critical")
    assert "aimlapi" not in router.fallback_candidates_for("critical")


def test_overrides(registry):
    router = OperationRouter(registry, {"critical": ["anthropic"], "fallback": ["google"]})

    assert router.candidates_for("critical") == ["anthropic"]
    assert router.fallback_candidates_for("standard") == ["google"]
    assert router.candidates_for("standard") == ["aimlapi", "openai"]


def test_override_with_unknown_provider(registry):
    with pytest.raises(UnknownProvider):
        OperationRouter(registry, {"standard": ["nobody"]})


def test_override_with_unknown_operation(registry):
    with pytest.raises(UnknownOperation):
        OperationRouter(registry, {"urgent": ["openai"]})


@pytest.mark.parametrize("value,expected", [
    ("critical", OperationClass.CRITICAL),
    ("real-time", OperationClass.REAL_TIME),
    ("real_time", OperationClass.REAL_TIME),
    (" Experimental ", OperationClass.EXPERIMENTAL),
    (OperationClass.STANDARD, OperationClass.STANDARD),
])
def test_parse_operation(value, expected):
    assert OperationClass.parse(value) is expected


def test_unknown_operation_rejected_at_request_construction():
    with pytest.raises(UnknownOperation):
        make_request(operation="bogus")


def test_describe(registry):
    routes = OperationRouter(registry).describe()

    assert routes["critical"] == ["openai", "anthropic"]
    assert routes["fallback"] == ["openai", "anthropic", "google"]
