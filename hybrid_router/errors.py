"""
Error taxonomy for the router.
Only UnknownProvider, UnknownOperation, AllProvidersFailed and
CollaborationFailed are expected to reach callers.
"""

from typing import Optional


class RouterError(Exception):
    pass


class ConfigError(RouterError):
    pass


class UpstreamError(RouterError):
    def __init__(self, status_code: Optional[int], message: str, provider: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.provider = provider
        super().__init__(self._format())

    def _format(self) -> str:
        status = self.status_code if self.status_code is not None else "transport"
        prefix = f"{self.provider}: " if self.provider else ""
        return f"{prefix}[{status}] {self.message}"


class UnknownProvider(RouterError):
    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class UnknownOperation(RouterError):
    def __init__(self, operation: object):
        self.operation = operation
        super().__init__(f"Unknown operation classification: {operation!r}")


class AllProvidersFailed(RouterError):
    def __init__(
        self,
        last_error: Optional[UpstreamError],
        attempted: list[str],
        errors: Optional[dict[str, UpstreamError]] = None,
        operation: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.last_error = last_error
        self.attempted = list(attempted)
        self.errors = dict(errors or {})
        self.operation = operation
        self.model = model
        super().__init__(self._format())

    def _headline(self) -> str:
        return "All providers failed"

    def _format(self) -> str:
        target = f" for model '{self.model}'" if self.model else ""
        if self.operation:
            target += f" ({self.operation})"
        if not self.attempted:
            return f"{self._headline()}{target}: no healthy provider was available among the candidates"

        per_provider = []
        for provider in self.attempted:
            error = self.errors.get(provider)
            if error is None:
                per_provider.append(provider)
                continue
            status = error.status_code if error.status_code is not None else "transport"
            per_provider.append(f"{provider}={status}")
        last = f". Last error: {self.last_error}" if self.last_error else ""
        return f"{self._headline()}{target}. Attempted: {', '.join(per_provider)}{last}"


class DeadlineExceeded(AllProvidersFailed):
    def _headline(self) -> str:
        return "Deadline exceeded before any provider succeeded"


class CollaborationFailed(RouterError):
    def __init__(self, errors: dict[str, RouterError]):
        self.errors = dict(errors)
        details = "; ".join(f"{role}: {err}" for role, err in self.errors.items())
        super().__init__(f"All collaboration sub-tasks failed. {details}".strip())
