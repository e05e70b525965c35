"""
Multi-model collaboration.
Runs one prompt through several role-specific models in parallel and merges the answers.
"""

from .roles import CollaborationRole, RoleDefinition, get_role_by_name, get_role_definition, get_role_definitions
from .aggregator import CollaborationResult, ModelResult, ResultAggregator
from .orchestrator import CollaborationOrchestrator

__all__ = [
    "CollaborationRole",
    "RoleDefinition",
    "get_role_by_name",
    "get_role_definition",
    "get_role_definitions",
    "CollaborationResult",
    "ModelResult",
    "ResultAggregator",
    "CollaborationOrchestrator",
]
