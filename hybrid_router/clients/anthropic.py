"""
Anthropic Messages API adapter.
"""

from typing import TYPE_CHECKING, Any

from ..errors import UpstreamError
from .base import (
    AdapterKind,
    CanonicalRequest,
    CanonicalResponse,
    HTTPAdapter,
    TokenUsage,
    require_api_key,
    split_system,
)

if TYPE_CHECKING:
    from ..registry import ProviderDescriptor


class AnthropicAdapter(HTTPAdapter):
    kind = AdapterKind.ANTHROPIC

    API_VERSION = "2023-06-01"
    MAX_TEMPERATURE = 1.0

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        system, messages = split_system(request.messages)
        payload: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [m.to_dict() for m in messages],
        }
        if system:
            payload["system"] = system
        # Out-of-range temperatures fall back to the provider default.
        if request.temperature <= self.MAX_TEMPERATURE:
            payload["temperature"] = request.temperature
        return payload

    async def invoke(self, descriptor: "ProviderDescriptor", request: CanonicalRequest) -> CanonicalResponse:
        headers = {
            "x-api-key": require_api_key(descriptor),
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        url = f"{descriptor.base_url.rstrip('/')}/messages"
        data = await self._post(descriptor, url, self.build_payload(request), headers=headers)

        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise UpstreamError(200, "malformed payload: missing content blocks", descriptor.name)
        text = "".join(
            block["text"]
            for block in blocks
            if isinstance(block, dict)
            and block.get("type", "text") == "text"
            and isinstance(block.get("text"), str)
        )

        usage = data.get("usage")
        if usage is None:
            usage = {}
        elif not isinstance(usage, dict):
            raise UpstreamError(200, "malformed payload: usage is not an object", descriptor.name)

        model = data.get("model")
        return CanonicalResponse(
            text=text,
            usage=TokenUsage.from_counts(usage.get("input_tokens"), usage.get("output_tokens")),
            provider=descriptor.name,
            model=model if isinstance(model, str) and model else request.model,
        )
