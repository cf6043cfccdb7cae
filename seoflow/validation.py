"""Static checks on workflow definitions."""

from __future__ import annotations

from collections import Counter
from typing import List

from pydantic import BaseModel

from .contracts import Workflow, WorkflowStep
from .errors import WorkflowDefinitionError


class ValidationIssue(BaseModel):
    """A problem found in a workflow definition."""

    kind: str  # duplicate_id, unknown_dependency, cycle
    step_id: str
    message: str


def duplicate_step_ids(workflow: Workflow) -> List[str]:
    counts = Counter(step.id for step in workflow.steps)
    return [step_id for step_id, count in counts.items() if count > 1]


def _cyclic_steps(workflow: Workflow) -> List[WorkflowStep]:
    """Steps that can never be ordered because they sit on or behind a cycle."""
    known = set(workflow.step_ids)
    remaining = {
        step.id: {d for d in step.dependencies if d in known} for step in workflow.steps
    }
    progress = True
    while progress:
        progress = False
        for step_id, deps in list(remaining.items()):
            if not deps & remaining.keys():
                del remaining[step_id]
                progress = True
    return [step for step in workflow.steps if step.id in remaining]


def validate_workflow(workflow: Workflow) -> List[ValidationIssue]:
    """Report duplicate ids, dangling dependencies and dependency cycles."""
    issues: List[ValidationIssue] = []
    for step_id in duplicate_step_ids(workflow):
        issues.append(
            ValidationIssue(
                kind="duplicate_id",
                step_id=step_id,
                message=f"Step id {step_id!r} is defined more than once",
            )
        )

    known = set(workflow.step_ids)
    for step in workflow.steps:
        for dep in step.dependencies:
            if dep not in known:
                issues.append(
                    ValidationIssue(
                        kind="unknown_dependency",
                        step_id=step.id,
                        message=f"Step {step.id!r} depends on unknown step {dep!r}",
                    )
                )

    for step in _cyclic_steps(workflow):
        issues.append(
            ValidationIssue(
                kind="cycle",
                step_id=step.id,
                message=f"Step {step.id!r} is part of or depends on a dependency cycle",
            )
        )
    return issues


def topological_order(workflow: Workflow) -> List[WorkflowStep]:
    """Order steps so every step follows its dependencies.

    Among steps whose dependencies are met, declaration order is kept.
    Dependencies on unknown steps are ignored here.

    Raises:
        WorkflowDefinitionError: If the steps contain a cycle.
    """
    cyclic = _cyclic_steps(workflow)
    if cyclic:
        ids = ", ".join(step.id for step in cyclic)
        raise WorkflowDefinitionError(f"Dependency cycle involving: {ids}")

    known = set(workflow.step_ids)
    ordered: List[WorkflowStep] = []
    placed: set[str] = set()
    pending = list(workflow.steps)
    while pending:
        for step in pending:
            if all(d in placed or d not in known for d in step.dependencies):
                ordered.append(step)
                placed.add(step.id)
                pending.remove(step)
                break
    return ordered
