"""Built-in workflow definitions and definition file loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

import yaml

from ..contracts import Workflow
from ..errors import WorkflowDefinitionError
from .aeo import (
    aeo_citation_optimization,
    aeo_comprehensive_audit,
    aeo_multi_platform_optimization,
)
from .competitor_analysis import competitor_analysis
from .rank_on_chatgpt import rank_on_chatgpt
from .technical_seo_audit import technical_seo_audit

BUILTIN_WORKFLOWS: Dict[str, Workflow] = {
    wf.id: wf
    for wf in (
        competitor_analysis,
        technical_seo_audit,
        rank_on_chatgpt,
        aeo_comprehensive_audit,
        aeo_citation_optimization,
        aeo_multi_platform_optimization,
    )
}


def list_workflows() -> List[Workflow]:
    return list(BUILTIN_WORKFLOWS.values())


def get_workflow(workflow_id: str) -> Workflow:
    """Return the built-in workflow ``workflow_id``.

    Raises:
        KeyError: If no built-in workflow has that id.
    """
    try:
        return BUILTIN_WORKFLOWS[workflow_id]
    except KeyError:
        raise KeyError(f"Unknown workflow: {workflow_id}") from None


def load_workflow(path: str | Path) -> Workflow:
    """Load a workflow definition from a YAML or JSON file."""
    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise WorkflowDefinitionError(f"{path} does not contain a workflow mapping")
    return Workflow.model_validate(data)


def resolve_workflow(ref: str) -> Workflow:
    """Resolve ``ref`` as a built-in workflow id, else as a definition file."""
    if ref in BUILTIN_WORKFLOWS:
        return BUILTIN_WORKFLOWS[ref]
    return load_workflow(ref)


__all__ = [
    "BUILTIN_WORKFLOWS",
    "aeo_citation_optimization",
    "aeo_comprehensive_audit",
    "aeo_multi_platform_optimization",
    "competitor_analysis",
    "rank_on_chatgpt",
    "technical_seo_audit",
    "get_workflow",
    "list_workflows",
    "load_workflow",
    "resolve_workflow",
]
