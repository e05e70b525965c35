"""
Result aggregator for combining the outputs of a collaboration.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..clients.base import CanonicalResponse
from ..errors import RouterError
from .roles import CollaborationRole, get_role_definition


@dataclass
class ModelResult:
    role: CollaborationRole
    success: bool
    response: Optional[CanonicalResponse] = None
    error: Optional[RouterError] = None
    execution_time: float = 0.0

    @property
    def content(self) -> str:
        return self.response.text if self.response else ""


@dataclass
class CollaborationResult:
    results: list[ModelResult]
    responses: dict[CollaborationRole, CanonicalResponse] = field(default_factory=dict)
    total_cost: float = 0.0
    synthesis: str = ""
    summary: str = ""
    confidence: float = 0.0
    providers_used: list[str] = field(default_factory=list)

    @property
    def successful(self) -> list[ModelResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[ModelResult]:
        return [r for r in self.results if not r.success]


class ResultAggregator:
    def __init__(self, role_order: Optional[list[CollaborationRole]] = None):
        self.role_order = role_order or [
            CollaborationRole.REASONING,
            CollaborationRole.ACCURACY,
            CollaborationRole.SPEED,
        ]

    def aggregate(self, results: list[ModelResult]) -> CollaborationResult:
        successful = [r for r in results if r.success and r.response is not None]
        responses = {r.role: r.response for r in successful}

        sections = []
        for role in self.role_order:
            response = responses.get(role)
            if response is None or not response.text.strip():
                continue
            role_def = get_role_definition(role)
            sections.append(f"### {role_def.name} ({role_def.description})\n{response.text}")

        providers_used = []
        for r in successful:
            if r.response.provider and r.response.provider not in providers_used:
                providers_used.append(r.response.provider)

        return CollaborationResult(
            results=list(results),
            responses=responses,
            total_cost=sum(r.response.cost for r in successful),
            synthesis="\n\n".join(sections),
            summary=self._generate_summary(results),
            confidence=len(successful) / len(results) if results else 0.0,
            providers_used=providers_used,
        )

    def _generate_summary(self, results: list[ModelResult]) -> str:
        done = [get_role_definition(r.role).name for r in results if r.success]
        failed = [get_role_definition(r.role).name for r in results if not r.success]
        summary = f"Collaboration finished: {len(done)}/{len(results)} roles answered"
        if done:
            summary += f" ({', '.join(done)})"
        if failed:
            summary += f"; failed: {', '.join(failed)}"
        return summary

    def format_for_display(self, result: CollaborationResult) -> str:
        lines = [f"[Summary] {result.summary}", f"[Confidence] {result.confidence:.0%}", "", "[Roles]"]
        for r in result.results:
            role_def = get_role_definition(r.role)
            status = "✓" if r.success else "✗"
            detail = r.response.provider if r.success else str(r.error)
            lines.append(f"  {status} {role_def.name}: {detail}")
        lines.append("")
        lines.append(result.synthesis)
        return "\n".join(lines)
