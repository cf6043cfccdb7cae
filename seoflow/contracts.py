"""Core data contracts for seoflow workflows."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import StepStateError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CheckpointType(str, Enum):
    STEP_START = "step_start"
    STEP_COMPLETE = "step_complete"
    MANUAL = "manual"
    ERROR_RECOVERY = "error_recovery"


TERMINAL_STEP_STATUSES = frozenset(
    {StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.SKIPPED}
)


# ----------------------------------------------------------------------
# Definitions


class ToolInvocation(BaseModel):
    """A single tool call made by a step.

    String values in ``params`` of the form ``{{name}}`` are resolved against
    the workflow context right before the call.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    params: Dict[str, Any] = Field(default_factory=dict)
    required: bool = False


class WorkflowStep(BaseModel):
    """Defines one node of a workflow graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    agent: str = "research"
    parallel: bool = False
    dependencies: List[str] = Field(default_factory=list)
    tools: List[ToolInvocation] = Field(default_factory=list)
    output_format: str = "json"
    system_prompt: Optional[str] = None


class Workflow(BaseModel):
    """Static declarative graph of steps."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: str = "seo"
    tags: List[str] = Field(default_factory=list)
    steps: List[WorkflowStep] = Field(default_factory=list)

    @property
    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        """Return the step with ``step_id`` or ``None``."""
        return next((s for s in self.steps if s.id == step_id), None)


class WorkflowContext(BaseModel):
    """Mutable state shared by the steps of one execution."""

    user_query: str = ""
    conversation_history: List[Any] = Field(default_factory=list)
    previous_step_results: Dict[str, Any] = Field(default_factory=dict)
    user_preferences: Dict[str, Any] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)
    cache: Dict[str, Any] = Field(default_factory=dict, exclude=True)


# ----------------------------------------------------------------------
# Results


class ToolExecutionResult(BaseModel):
    """Outcome of one tool call."""

    tool_name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    cached: bool = False
    duration: float = 0.0


class StepResult(BaseModel):
    """Execution record for one step."""

    step_id: str
    status: StepStatus = StepStatus.PENDING
    dependencies: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)
    tool_results: Dict[str, ToolExecutionResult] = Field(default_factory=dict)
    error: Optional[str] = None
    skip_reason: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STEP_STATUSES

    def transition(self, status: StepStatus, **fields: Any) -> "StepResult":
        """Move the result to ``status`` and update ``fields``.

        Raises:
            StepStateError: If the result already reached a terminal status.
        """
        if self.is_terminal:
            raise StepStateError(
                f"Step {self.step_id} is already {self.status.value}; "
                f"cannot move to {StepStatus(status).value}"
            )
        for key, value in fields.items():
            setattr(self, key, value)
        self.status = StepStatus(status)
        if self.is_terminal and self.end_time is None:
            self.end_time = utcnow()
        if self.start_time is not None and self.end_time is not None:
            self.duration = (self.end_time - self.start_time).total_seconds()
        return self


class WorkflowExecution(BaseModel):
    """Persisted record of a single workflow run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workflow_id: str
    conversation_id: Optional[str] = None
    user_id: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.RUNNING
    current_step: Optional[str] = None
    step_results: List[StepResult] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    error_message: Optional[str] = None
    checkpoint_data: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def get_step_result(self, step_id: str) -> Optional[StepResult]:
        return next((r for r in self.step_results if r.step_id == step_id), None)

    def completed_step_ids(self) -> List[str]:
        return [
            r.step_id for r in self.step_results if r.status == StepStatus.COMPLETED
        ]


# ----------------------------------------------------------------------
# Checkpoints


class CheckpointSnapshot(BaseModel):
    """State captured by a checkpoint."""

    step_id: str
    step_results: List[StepResult] = Field(default_factory=list)
    previous_step_results: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class CheckpointRecord(BaseModel):
    """Stored checkpoint entry."""

    id: Optional[int] = None
    execution_id: str
    checkpoint_type: CheckpointType
    snapshot: CheckpointSnapshot
    created_at: datetime = Field(default_factory=utcnow)


class ResumeInfo(BaseModel):
    """Answer to "can this execution be resumed, and from where"."""

    can_resume: bool = False
    last_successful_step: Optional[str] = None
    completed_steps: List[str] = Field(default_factory=list)
    checkpoint_type: Optional[CheckpointType] = None


def recoverable_steps(step_results: Iterable[StepResult]) -> List[str]:
    """Return ids of the completed steps a resumed run may treat as done.

    Results are read in execution order. A completed step is recoverable when
    every dependency it recorded is itself recoverable, so a failure inside a
    parallel batch does not hide the siblings that completed next to it.
    """
    recovered: List[str] = []
    for result in step_results:
        if result.status != StepStatus.COMPLETED:
            continue
        if all(dep in recovered for dep in result.dependencies):
            recovered.append(result.step_id)
    return recovered
