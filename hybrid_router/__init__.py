"""
Hybrid Router - cost-aware routing of LLM requests across multiple providers.
"""

__version__ = "0.1.0"

from .clients import CanonicalRequest, CanonicalResponse, Message, Role, TokenUsage
from .config import Config, load_config
from .errors import (
    AllProvidersFailed,
    CollaborationFailed,
    ConfigError,
    DeadlineExceeded,
    RouterError,
    UnknownOperation,
    UnknownProvider,
    UpstreamError,
)
from .hybrid import BatchResult, HybridRouter
from .orchestration import CollaborationResult, CollaborationRole
from .routing import OperationClass

__all__ = [
    "__version__",
    "AllProvidersFailed",
    "BatchResult",
    "CanonicalRequest",
    "CanonicalResponse",
    "CollaborationFailed",
    "CollaborationResult",
    "CollaborationRole",
    "Config",
    "ConfigError",
    "DeadlineExceeded",
    "HybridRouter",
    "Message",
    "OperationClass",
    "Role",
    "RouterError",
    "TokenUsage",
    "UnknownOperation",
    "UnknownProvider",
    "UpstreamError",
    "load_config",
]
