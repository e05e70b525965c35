"""
Protocol adapters for the supported provider families.
Each provider descriptor carries an AdapterKind tag; build_adapters() returns
the tag -> adapter lookup table used by the engine and the health monitor.
"""

from typing import Optional

import httpx

from .anthropic import AnthropicAdapter
from .base import (
    AdapterKind,
    CanonicalRequest,
    CanonicalResponse,
    Message,
    ProtocolAdapter,
    Role,
    TokenUsage,
)
from .google import GoogleAdapter
from .openai_compatible import OpenAICompatibleAdapter


def build_adapters(
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[AdapterKind, ProtocolAdapter]:
    return {
        AdapterKind.OPENAI_COMPATIBLE: OpenAICompatibleAdapter(timeout=timeout, transport=transport),
        AdapterKind.ANTHROPIC: AnthropicAdapter(timeout=timeout, transport=transport),
        AdapterKind.GOOGLE: GoogleAdapter(timeout=timeout, transport=transport),
    }


__all__ = [
    "AdapterKind",
    "AnthropicAdapter",
    "CanonicalRequest",
    "CanonicalResponse",
    "GoogleAdapter",
    "Message",
    "OpenAICompatibleAdapter",
    "ProtocolAdapter",
    "Role",
    "TokenUsage",
    "build_adapters",
]
