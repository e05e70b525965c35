"""
Collaboration orchestrator: fans one prompt out to every role concurrently
and aggregates whatever comes back.
"""

import asyncio
import logging
import time
from typing import Optional, Union

from ..clients.base import CanonicalRequest, Message, Role
from ..engine import ExecutionEngine
from ..errors import AllProvidersFailed, CollaborationFailed
from ..routing import OperationClass
from .aggregator import CollaborationResult, ModelResult, ResultAggregator
from .roles import CollaborationRole, RoleDefinition, get_role_definitions

logger = logging.getLogger(__name__)

COLLABORATION_TEMPERATURE = 0.7
COLLABORATION_MAX_TOKENS = 2000


class CollaborationOrchestrator:
    def __init__(
        self,
        engine: ExecutionEngine,
        roles: Optional[list[RoleDefinition]] = None,
        aggregator: Optional[ResultAggregator] = None,
    ):
        self.engine = engine
        self.roles = roles if roles is not None else list(get_role_definitions().values())
        self.aggregator = aggregator or ResultAggregator()

    def build_request(self, role_def: RoleDefinition, prompt: str, base_operation: OperationClass) -> CanonicalRequest:
        return CanonicalRequest(
            model=role_def.model,
            messages=[
                Message(role=Role.SYSTEM, content=f"You are the {role_def.role.value} AI in a triple-AI collaboration."),
                Message(role=Role.USER, content=f"{prompt}\n\n{role_def.system_prompt_suffix}"),
            ],
            temperature=COLLABORATION_TEMPERATURE,
            max_tokens=COLLABORATION_MAX_TOKENS,
            operation=role_def.operation_for(base_operation),
        )

    async def _run_role(self, role_def: RoleDefinition, request: CanonicalRequest) -> ModelResult:
        start_time = time.monotonic()
        try:
            response = await self.engine.execute(request)
        except AllProvidersFailed as e:
            logger.warning("Collaboration role %s failed: %s", role_def.role.value, e)
            return ModelResult(
                role=role_def.role, success=False, error=e, execution_time=time.monotonic() - start_time,
            )
        return ModelResult(
            role=role_def.role, success=True, response=response, execution_time=time.monotonic() - start_time,
        )

    async def collaborate(
        self,
        prompt: str,
        base_operation: Union[OperationClass, str] = OperationClass.STANDARD,
    ) -> CollaborationResult:
        """Run every role against ``prompt`` and wait for all of them.

        Roles whose providers are exhausted come back as failed results. Any
        other exception is re-raised once every role has settled. Raises
        CollaborationFailed when no role succeeded.
        """
        base_operation = OperationClass.parse(base_operation)
        requests = [self.build_request(r, prompt, base_operation) for r in self.roles]

        logger.info("Starting collaboration across %d roles (%s)", len(self.roles), base_operation.value)
        outcomes = await asyncio.gather(
            *(self._run_role(r, request) for r, request in zip(self.roles, requests)),
            return_exceptions=True,
        )

        results: list[ModelResult] = []
        unexpected: Optional[BaseException] = None
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                if unexpected is None:
                    unexpected = outcome
            else:
                results.append(outcome)

        if unexpected is not None:
            raise unexpected

        if not any(r.success for r in results):
            raise CollaborationFailed({r.role.value: r.error for r in results})

        result = self.aggregator.aggregate(results)
        logger.info("%s, cost %.6f", result.summary, result.total_cost)
        return result

    def get_roles(self) -> list[CollaborationRole]:
        return [r.role for r in self.roles]
