from __future__ import annotations

from seoflow.contracts import ToolInvocation, Workflow, WorkflowStep


def make_step(step_id: str, *deps: str, tool: str = "test_tool", **kwargs) -> WorkflowStep:
    """Build a step with one required tool unless ``tools`` is given."""
    tools = kwargs.pop("tools", None) or [ToolInvocation(name=tool, required=True)]
    return WorkflowStep(
        id=step_id,
        name=step_id.replace("-", " ").title(),
        dependencies=list(deps),
        tools=tools,
        **kwargs,
    )


def make_workflow(*steps: WorkflowStep, workflow_id: str = "test-workflow") -> Workflow:
    return Workflow(id=workflow_id, name="Test Workflow", steps=list(steps))
