"""Repository abstraction for workflow execution persistence."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from pydantic import ValidationError

from ..contracts import (
    CheckpointRecord,
    CheckpointSnapshot,
    CheckpointType,
    ResumeInfo,
    WorkflowExecution,
    recoverable_steps,
)
from ..errors import PersistenceError


class ExecutionRepository(Protocol):
    """Protocol for execution and checkpoint persistence backends."""

    async def save_execution(self, execution: WorkflowExecution) -> None:
        """Insert or replace the execution record."""

    async def save_checkpoint(
        self,
        execution_id: str,
        snapshot: CheckpointSnapshot,
        checkpoint_type: CheckpointType,
    ) -> None:
        """Append a checkpoint; earlier checkpoints are kept."""

    async def load_execution(self, execution_id: str) -> WorkflowExecution | None:
        """Return the latest stored execution record."""

    async def resume_from_checkpoint(self, execution_id: str) -> ResumeInfo:
        """Decide whether the execution can be resumed."""

    async def list_executions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Return executions, newest first."""

    async def list_checkpoints(self, execution_id: str) -> list[CheckpointRecord]:
        """Return the checkpoints of an execution, oldest first."""


def build_resume_info(
    execution: WorkflowExecution | None, checkpoints: Sequence[CheckpointRecord]
) -> ResumeInfo:
    """Derive ``ResumeInfo`` from the newest checkpoint, else the execution."""

    if checkpoints:
        latest = checkpoints[-1]
        completed = recoverable_steps(latest.snapshot.step_results)
        checkpoint_type: CheckpointType | None = latest.checkpoint_type
    elif execution is not None:
        completed = recoverable_steps(execution.step_results)
        checkpoint_type = None
    else:
        return ResumeInfo()

    return ResumeInfo(
        can_resume=bool(completed),
        last_successful_step=completed[-1] if completed else None,
        completed_steps=completed,
        checkpoint_type=checkpoint_type,
    )


def decode_execution(raw: str | bytes) -> WorkflowExecution:
    """Parse a stored execution record.

    Raises:
        PersistenceError: If the stored JSON no longer matches the model.
    """
    try:
        return WorkflowExecution.model_validate_json(raw)
    except ValidationError as exc:
        raise PersistenceError(f"Stored execution record is invalid: {exc}") from exc
