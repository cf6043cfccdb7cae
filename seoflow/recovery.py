"""Recovery of failed or interrupted workflow executions."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from .contracts import StepResult, StepStatus, WorkflowExecution, recoverable_steps
from .engine import WorkflowEngine
from .persistence import ExecutionRepository

logger = logging.getLogger(__name__)


class RecoveryResult(BaseModel):
    """Outcome of inspecting an execution for resumption."""

    execution_id: str
    can_recover: bool = False
    last_successful_step: Optional[str] = None
    completed_steps: List[str] = Field(default_factory=list)


class WorkflowRecovery:
    """Works out whether a stored execution can resume, and resumes it."""

    def __init__(self, repository: ExecutionRepository) -> None:
        self._repository = repository

    async def recover_execution(self, execution_id: str) -> RecoveryResult:
        """Inspect ``execution_id`` and report the resume point.

        A stored step counts as recovered when it completed and every step it
        depends on was recovered too, so completed siblings of a failed
        parallel step survive. When no execution record exists the latest
        checkpoint is consulted instead.
        """
        execution = await self._repository.load_execution(execution_id)
        if execution is not None:
            completed = recoverable_steps(execution.step_results)
        else:
            info = await self._repository.resume_from_checkpoint(execution_id)
            completed = info.completed_steps

        result = RecoveryResult(
            execution_id=execution_id,
            can_recover=bool(completed),
            last_successful_step=completed[-1] if completed else None,
            completed_steps=completed,
        )
        if result.can_recover:
            logger.info(
                f"Execution {execution_id} can resume after step {result.last_successful_step}"
            )
        else:
            logger.info(f"Execution {execution_id} must restart from scratch")
        return result

    async def completed_results(self, execution_id: str) -> List[StepResult]:
        """Return the stored results that a resumed run may treat as done."""
        recovery = await self.recover_execution(execution_id)
        if not recovery.can_recover:
            return []
        wanted = set(recovery.completed_steps)

        execution = await self._repository.load_execution(execution_id)
        if execution is not None:
            source = execution.step_results
        else:
            checkpoints = await self._repository.list_checkpoints(execution_id)
            source = checkpoints[-1].snapshot.step_results if checkpoints else []
        return [
            r for r in source if r.step_id in wanted and r.status == StepStatus.COMPLETED
        ]

    async def resume(self, engine: WorkflowEngine, execution_id: str) -> WorkflowExecution:
        """Re-run ``engine``'s workflow under ``execution_id``.

        Steps recovered as completed are not executed again. When nothing is
        recoverable the workflow simply runs from the start.
        """
        seeded = await self.completed_results(execution_id)
        logger.info(
            f"Resuming execution {execution_id} with {len(seeded)} completed step(s)"
        )
        return await engine.execute(execution_id=execution_id, completed_results=seeded)
