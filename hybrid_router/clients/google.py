"""
Google Generative Language (Gemini) adapter.
"""

from typing import TYPE_CHECKING, Any

from ..errors import UpstreamError
from .base import (
    AdapterKind,
    CanonicalRequest,
    CanonicalResponse,
    HTTPAdapter,
    Role,
    TokenUsage,
    require_api_key,
    split_system,
)

if TYPE_CHECKING:
    from ..registry import ProviderDescriptor


class GoogleAdapter(HTTPAdapter):
    kind = AdapterKind.GOOGLE

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        system, messages = split_system(request.messages)
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == Role.ASSISTANT else "user",
                    "parts": [{"text": m.content}],
                }
                for m in messages
            ],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    async def invoke(self, descriptor: "ProviderDescriptor", request: CanonicalRequest) -> CanonicalResponse:
        url = f"{descriptor.base_url.rstrip('/')}/models/{request.model}:generateContent"
        data = await self._post(
            descriptor,
            url,
            self.build_payload(request),
            params={"key": require_api_key(descriptor)},
        )

        candidates = data.get("candidates")
        if not candidates or not isinstance(candidates, list):
            raise UpstreamError(200, "malformed payload: no candidates", descriptor.name)
        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise UpstreamError(200, "malformed payload: candidate has no content parts", descriptor.name)
        text = "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))

        usage = data.get("usageMetadata")
        if usage is None:
            usage = {}
        elif not isinstance(usage, dict):
            raise UpstreamError(200, "malformed payload: usageMetadata is not an object", descriptor.name)

        model = data.get("modelVersion")
        return CanonicalResponse(
            text=text,
            usage=TokenUsage.from_counts(
                usage.get("promptTokenCount"),
                usage.get("candidatesTokenCount"),
                usage.get("totalTokenCount"),
            ),
            provider=descriptor.name,
            model=model if isinstance(model, str) and model else request.model,
        )
