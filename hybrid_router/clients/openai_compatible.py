"""
OpenAI-compatible API adapter.
Serves OpenAI itself and aggregators that expose the same chat-completions API.
"""

from typing import TYPE_CHECKING, Any, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..errors import UpstreamError
from .base import AdapterKind, CanonicalRequest, CanonicalResponse, ProtocolAdapter, TokenUsage, require_api_key

if TYPE_CHECKING:
    from ..registry import ProviderDescriptor


class OpenAICompatibleAdapter(ProtocolAdapter):
    kind = AdapterKind.OPENAI_COMPATIBLE

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport
        self._clients: dict[str, AsyncOpenAI] = {}

    def _client_for(self, descriptor: "ProviderDescriptor") -> AsyncOpenAI:
        client = self._clients.get(descriptor.name)
        if client is None:
            # Retries belong to the execution engine, not the SDK.
            client = AsyncOpenAI(
                api_key=require_api_key(descriptor),
                base_url=descriptor.base_url,
                max_retries=0,
                http_client=httpx.AsyncClient(timeout=self.timeout, transport=self._transport),
            )
            self._clients[descriptor.name] = client
        return client

    async def invoke(self, descriptor: "ProviderDescriptor", request: CanonicalRequest) -> CanonicalResponse:
        client = self._client_for(descriptor)

        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [m.to_dict() for m in request.messages],
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            raise UpstreamError(e.status_code, e.message, descriptor.name) from e
        except openai.APIError as e:
            raise UpstreamError(None, str(e), descriptor.name) from e

        try:
            choice = response.choices[0]
            content = choice.message.content or ""
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise UpstreamError(200, "malformed payload: no choices in response", descriptor.name) from e
        if not isinstance(content, str):
            raise UpstreamError(200, "malformed payload: message content is not text", descriptor.name)

        usage = getattr(response, "usage", None)
        model = getattr(response, "model", None)
        return CanonicalResponse(
            text=content,
            usage=TokenUsage.from_counts(
                getattr(usage, "prompt_tokens", None),
                getattr(usage, "completion_tokens", None),
                getattr(usage, "total_tokens", None),
            ),
            provider=descriptor.name,
            model=model if isinstance(model, str) and model else request.model,
        )

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
