import pytest

from hybrid_router.clients.base import (
    AdapterKind,
    CanonicalRequest,
    CanonicalResponse,
    Message,
    ProtocolAdapter,
    Role,
    TokenUsage,
)
from hybrid_router.config import Config
from hybrid_router.engine import ExecutionEngine
from hybrid_router.errors import UpstreamError
from hybrid_router.health import HealthMonitor
from hybrid_router.registry import ProviderRegistry
from hybrid_router.routing import OperationRouter
from hybrid_router.state import RouterState
from hybrid_router.stats import MetricsLedger


def ok(text="ok", prompt=1000, completion=500):
    return CanonicalResponse(text=text, usage=TokenUsage.from_counts(prompt, completion))


def fail(status=500, message="upstream exploded"):
    return UpstreamError(status, message)


def make_request(model="gpt-5", operation="standard", content="hello"):
    return CanonicalRequest(
        model=model,
        messages=[Message(role=Role.USER, content=content)],
        operation=operation,
    )


class FakeAdapter(ProtocolAdapter):
    """Plays back scripted outcomes per provider name.

    An outcome is a CanonicalResponse, an exception to raise, or an async
    callable taking (descriptor, request).
    """

    def __init__(self):
        self.scripts: dict[str, list] = {}
        self.defaults: dict[str, object] = {}
        self.calls: list[tuple[str, CanonicalRequest]] = []
        self.closed = False

    def script(self, provider, *outcomes):
        self.scripts.setdefault(provider, []).extend(outcomes)

    def always(self, provider, outcome):
        self.defaults[provider] = outcome

    def called(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def invoke(self, descriptor, request):
        self.calls.append((descriptor.name, request))
        queue = self.scripts.get(descriptor.name)
        outcome = queue.pop(0) if queue else self.defaults.get(descriptor.name, ok())
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(descriptor, request)
        return outcome

    async def aclose(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def registry(config):
    return ProviderRegistry.from_config(config)


@pytest.fixture
def fake():
    return FakeAdapter()


@pytest.fixture
def adapters(fake):
    return {kind: fake for kind in AdapterKind}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def state(registry, adapters, clock):
    health = HealthMonitor(registry, adapters, clock=clock)
    return RouterState(health=health, metrics=MetricsLedger(registry.ids()))


@pytest.fixture
def engine(registry, adapters, state, sleeper):
    return ExecutionEngine(registry, OperationRouter(registry), adapters, state, sleep=sleeper)
