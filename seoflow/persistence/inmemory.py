"""In-memory implementation of the execution repository."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from ..contracts import (
    CheckpointRecord,
    CheckpointSnapshot,
    CheckpointType,
    ResumeInfo,
    WorkflowExecution,
)
from .repository import ExecutionRepository, build_resume_info


class InMemoryExecutionRepository(ExecutionRepository):
    """Store executions and checkpoints in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Records are stored as deep copies so
    later mutation by the engine does not leak into stored state.
    """

    def __init__(self) -> None:
        self._executions: Dict[str, WorkflowExecution] = {}
        self._checkpoints: Dict[str, List[CheckpointRecord]] = defaultdict(list)
        self._checkpoint_id = 0

    # ------------------------------------------------------------------
    async def save_execution(self, execution: WorkflowExecution) -> None:
        self._executions[execution.id] = execution.model_copy(deep=True)

    async def save_checkpoint(
        self,
        execution_id: str,
        snapshot: CheckpointSnapshot,
        checkpoint_type: CheckpointType,
    ) -> None:
        self._checkpoint_id += 1
        self._checkpoints[execution_id].append(
            CheckpointRecord(
                id=self._checkpoint_id,
                execution_id=execution_id,
                checkpoint_type=checkpoint_type,
                snapshot=snapshot.model_copy(deep=True),
            )
        )

    async def load_execution(self, execution_id: str) -> WorkflowExecution | None:
        execution = self._executions.get(execution_id)
        return execution.model_copy(deep=True) if execution else None

    async def resume_from_checkpoint(self, execution_id: str) -> ResumeInfo:
        return build_resume_info(
            self._executions.get(execution_id),
            self._checkpoints.get(execution_id, []),
        )

    async def list_executions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        executions = [
            e
            for e in self._executions.values()
            if user_id is None or e.user_id == user_id
        ]
        executions.sort(key=lambda e: e.start_time, reverse=True)
        return [e.model_copy(deep=True) for e in executions[:limit]]

    async def list_checkpoints(self, execution_id: str) -> list[CheckpointRecord]:
        return list(self._checkpoints.get(execution_id, []))
