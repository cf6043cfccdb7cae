"""In-process metrics for tool calls and workflow runs."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from .contracts import ToolExecutionResult, WorkflowExecution, utcnow


class ToolMetrics(BaseModel):
    tool_name: str
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    cache_hits: int = 0
    total_duration: float = 0.0
    min_duration: Optional[float] = None
    max_duration: float = 0.0
    last_executed: Optional[datetime] = None

    @property
    def average_duration(self) -> float:
        if not self.total_executions:
            return 0.0
        return self.total_duration / self.total_executions

    @property
    def cache_hit_rate(self) -> float:
        if not self.total_executions:
            return 0.0
        return self.cache_hits / self.total_executions


class WorkflowMetrics(BaseModel):
    workflow_id: str
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    total_duration: float = 0.0
    steps_completed: int = 0
    steps_total: int = 0

    @property
    def average_duration(self) -> float:
        if not self.total_executions:
            return 0.0
        return self.total_duration / self.total_executions

    @property
    def success_rate(self) -> float:
        if not self.total_executions:
            return 0.0
        return self.successful_executions / self.total_executions


class WorkflowAnalytics:
    """Collects metrics in memory; state is lost when the process exits.

    One instance is usually shared by all engines of a process and passed to
    each ``WorkflowEngine`` explicitly.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolMetrics] = {}
        self._workflows: Dict[str, WorkflowMetrics] = {}

    def record_tool_execution(self, result: ToolExecutionResult) -> None:
        metrics = self._tools.setdefault(
            result.tool_name, ToolMetrics(tool_name=result.tool_name)
        )
        metrics.total_executions += 1
        if result.success:
            metrics.successful_executions += 1
        else:
            metrics.failed_executions += 1
        if result.cached:
            metrics.cache_hits += 1
        metrics.total_duration += result.duration
        metrics.min_duration = (
            result.duration
            if metrics.min_duration is None
            else min(metrics.min_duration, result.duration)
        )
        metrics.max_duration = max(metrics.max_duration, result.duration)
        metrics.last_executed = utcnow()

    def record_workflow_execution(self, execution: WorkflowExecution) -> None:
        metrics = self._workflows.setdefault(
            execution.workflow_id, WorkflowMetrics(workflow_id=execution.workflow_id)
        )
        metrics.total_executions += 1
        if execution.status == "completed":
            metrics.successful_executions += 1
        else:
            metrics.failed_executions += 1
        if execution.end_time is not None:
            metrics.total_duration += (
                execution.end_time - execution.start_time
            ).total_seconds()
        metrics.steps_completed += len(execution.completed_step_ids())
        metrics.steps_total += len(execution.step_results)

    def get_tool_metrics(self, tool_name: str) -> Optional[ToolMetrics]:
        return self._tools.get(tool_name)

    def get_all_tool_metrics(self) -> List[ToolMetrics]:
        return list(self._tools.values())

    def get_workflow_metrics(self, workflow_id: str) -> Optional[WorkflowMetrics]:
        return self._workflows.get(workflow_id)

    def reset(self) -> None:
        self._tools.clear()
        self._workflows.clear()


__all__ = ["ToolMetrics", "WorkflowMetrics", "WorkflowAnalytics"]
