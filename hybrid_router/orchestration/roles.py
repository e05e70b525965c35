"""
Collaboration role definitions.
Each role pins a canonical model and a prompt suffix; the provider that
actually serves it is decided by the operation router.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..routing import OperationClass


class CollaborationRole(Enum):
    REASONING = "reasoning"
    ACCURACY = "accuracy"
    SPEED = "speed"


@dataclass(frozen=True)
class RoleDefinition:
    role: CollaborationRole
    name: str
    description: str
    model: str
    system_prompt_suffix: str
    cost_optimized: bool = False

    def operation_for(self, base_operation: OperationClass) -> OperationClass:
        """Cost-optimized roles always run as standard; the rest follow a critical base."""
        if self.cost_optimized:
            return OperationClass.STANDARD
        if base_operation == OperationClass.CRITICAL:
            return OperationClass.CRITICAL
        return OperationClass.STANDARD


ROLE_DEFINITIONS: dict[CollaborationRole, RoleDefinition] = {
    CollaborationRole.REASONING: RoleDefinition(
        role=CollaborationRole.REASONING,
        name="Reasoning",
        description="deep analysis",
        model="gpt-5",
        system_prompt_suffix="Provide comprehensive reasoning and analysis.",
    ),
    CollaborationRole.ACCURACY: RoleDefinition(
        role=CollaborationRole.ACCURACY,
        name="Accuracy",
        description="safety and risk review",
        model="claude-4.5-sonnet",
        system_prompt_suffix="Focus on accuracy, safety, and risk assessment.",
    ),
    CollaborationRole.SPEED: RoleDefinition(
        role=CollaborationRole.SPEED,
        name="Speed",
        description="fast key insights",
        model="gemini-2.5-flash",
        system_prompt_suffix="Provide fast, efficient response with key insights.",
        cost_optimized=True,
    ),
}


def get_role_definition(role: CollaborationRole) -> RoleDefinition:
    return ROLE_DEFINITIONS[role]


def get_role_definitions() -> dict[CollaborationRole, RoleDefinition]:
    return ROLE_DEFINITIONS


def get_role_by_name(name: str) -> Optional[CollaborationRole]:
    name_lower = name.lower()
    for role, definition in ROLE_DEFINITIONS.items():
        if role.value == name_lower or definition.name.lower() == name_lower:
            return role
    return None
