"""
Base adapter interface and canonical request/response structures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

import httpx

from ..errors import UpstreamError
from ..routing import OperationClass

if TYPE_CHECKING:
    from ..registry import ProviderDescriptor


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class AdapterKind(Enum):
    OPENAI_COMPATIBLE = "openai_compatible"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def __post_init__(self):
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(
        cls,
        prompt: Optional[int] = None,
        completion: Optional[int] = None,
        total: Optional[int] = None,
    ) -> "TokenUsage":
        """Fill whichever field is missing from total = prompt + completion.

        When fewer than two of the three counts are known the missing ones
        are reported as 0.
        """
        prompt = _count(prompt)
        completion = _count(completion)
        total = _count(total)

        if total is None and prompt is not None and completion is not None:
            total = prompt + completion
        elif prompt is None and total is not None and completion is not None:
            prompt = max(total - completion, 0)
        elif completion is None and total is not None and prompt is not None:
            completion = max(total - prompt, 0)

        return cls(
            prompt_tokens=prompt or 0,
            completion_tokens=completion or 0,
            total_tokens=total or 0,
        )


def _count(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class CanonicalRequest:
    model: str
    messages: Sequence[Message]
    temperature: float = 0.7
    max_tokens: int = 2000
    operation: Union[OperationClass, str] = OperationClass.STANDARD

    def __post_init__(self):
        if not self.model:
            raise ValueError("model must be a non-empty canonical model name")
        messages = tuple(
            m if isinstance(m, Message) else Message(role=m["role"], content=m["content"])
            for m in self.messages
        )
        if not messages:
            raise ValueError("messages must not be empty")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be within [0.0, 2.0], got {self.temperature}")
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")
        object.__setattr__(self, "messages", messages)
        object.__setattr__(self, "operation", OperationClass.parse(self.operation))


@dataclass(frozen=True)
class CanonicalResponse:
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
    model: str = ""
    cost: float = 0.0


class ProtocolAdapter(ABC):
    kind: AdapterKind

    @abstractmethod
    async def invoke(self, descriptor: "ProviderDescriptor", request: CanonicalRequest) -> CanonicalResponse:
        """Send ``request`` (already carrying the native model name) to the provider."""

    async def aclose(self) -> None:
        pass


class HTTPAdapter(ProtocolAdapter):
    """Adapter for providers spoken to directly over JSON/HTTP."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _post(
        self,
        descriptor: "ProviderDescriptor",
        url: str,
        payload: dict[str, Any],
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.post(url, json=payload, headers=headers, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(None, f"{type(e).__name__}: {e}", descriptor.name) from e

        if not response.is_success:
            detail = response.text[:500] or response.reason_phrase
            raise UpstreamError(response.status_code, detail, descriptor.name)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(response.status_code, "malformed payload: body is not JSON", descriptor.name) from e
        if not isinstance(data, dict):
            raise UpstreamError(response.status_code, "malformed payload: expected a JSON object", descriptor.name)
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


def require_api_key(descriptor: "ProviderDescriptor") -> str:
    if not descriptor.api_key:
        raise UpstreamError(401, "no credential configured", descriptor.name)
    return descriptor.api_key


def split_system(messages: Sequence[Message]) -> tuple[Optional[str], list[Message]]:
    system_parts = [m.content for m in messages if m.role == Role.SYSTEM]
    rest = [m for m in messages if m.role != Role.SYSTEM]
    system = "\n\n".join(system_parts) if system_parts else None
    return system, rest
