"""Workflow execution engine."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from typing import Dict, List, Optional, Sequence

from pydantic_core import to_jsonable_python

from .analytics import WorkflowAnalytics
from .config import EngineConfig, load_config
from .contracts import (
    CheckpointSnapshot,
    CheckpointType,
    ExecutionStatus,
    StepResult,
    StepStatus,
    ToolExecutionResult,
    ToolInvocation,
    Workflow,
    WorkflowContext,
    WorkflowExecution,
    WorkflowStep,
    utcnow,
)
from .errors import ToolTimeoutError, UnknownToolError, WorkflowDefinitionError
from .persistence import ExecutionRepository, get_repository
from .templating import build_template_scope, resolve_params
from .tools import ToolExecutor
from .utils.retry import retry_async
from .validation import duplicate_step_ids, validate_workflow

logger = logging.getLogger(__name__)


def _canonical(value):
    """Stringify mapping keys so params with mixed key types still sort."""
    if isinstance(value, dict):
        return {str(key): _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


class WorkflowEngine:
    """Runs a ``Workflow`` against a ``WorkflowContext``.

    Steps are scheduled in passes. Each pass skips steps whose dependencies
    can no longer complete, then runs the first ready step, or the run of
    consecutive ready ``parallel`` steps starting with it, concurrently. The
    first failed step stops the workflow; every step that was not run gets a
    ``skipped`` result so the execution trace always covers the whole
    definition.

    Tool calls go through the injected ``ToolExecutor``; progress is written
    to the ``ExecutionRepository`` as checkpoints and execution snapshots.
    """

    def __init__(
        self,
        workflow: Workflow,
        context: WorkflowContext,
        tool_executor: ToolExecutor,
        repository: ExecutionRepository | None = None,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        config: Optional[EngineConfig] = None,
        analytics: Optional[WorkflowAnalytics] = None,
    ) -> None:
        self.workflow = workflow
        self.context = context
        self.conversation_id = conversation_id
        self.user_id = user_id
        self._tools = tool_executor
        self._repository = repository or get_repository()
        self._config = config or load_config().engine
        self._analytics = analytics
        self._results: Dict[str, StepResult] = {}
        self._execution: Optional[WorkflowExecution] = None

    @property
    def repository(self) -> ExecutionRepository:
        return self._repository

    # ------------------------------------------------------------------
    async def execute(
        self,
        execution_id: Optional[str] = None,
        completed_results: Sequence[StepResult] = (),
    ) -> WorkflowExecution:
        """Run the workflow to completion or to its first failed step.

        Args:
            execution_id: Id for the execution record. A new one is generated
                when omitted; pass an existing id to continue a stored run.
            completed_results: Results of steps that already completed in an
                earlier run. They count as satisfied and are not re-executed.

        Returns:
            The terminal ``WorkflowExecution``. A failed step yields a
            ``failed`` execution rather than an exception.

        Raises:
            WorkflowDefinitionError: If the definition cannot be executed.
            Exception: Unexpected errors, including a terminal save that keeps
                failing, propagate after the failed state was recorded.
        """
        self._check_definition()
        self.context.cache.clear()
        self._results = {}
        execution = WorkflowExecution(
            id=execution_id or str(uuid.uuid4()),
            workflow_id=self.workflow.id,
            conversation_id=self.conversation_id,
            user_id=self.user_id,
        )
        self._execution = execution
        self._seed_completed(completed_results)

        logger.info(
            f"Starting workflow {self.workflow.name} (execution_id={execution.id})"
        )
        try:
            await self._run_steps()
        except Exception as exc:
            logger.error(f"Workflow {self.workflow.id} execution error: {exc}")
            execution.status = ExecutionStatus.FAILED
            execution.end_time = utcnow()
            execution.error_message = str(exc) or exc.__class__.__name__
            for result in self._results.values():
                if not result.is_terminal:
                    result.transition(StepStatus.FAILED, error=execution.error_message)
            self._sync_results()
            try:
                await self._repository.save_execution(execution)
            except Exception as save_exc:
                logger.warning(
                    f"Failed to save failed execution {execution.id}: {save_exc}"
                )
            raise

        if execution.status == ExecutionStatus.RUNNING:
            execution.status = ExecutionStatus.COMPLETED
        execution.end_time = utcnow()
        self._sync_results()

        await retry_async(
            lambda: self._repository.save_execution(execution),
            retries=self._config.save_retries,
            description=f"Saving execution {execution.id}",
        )
        if self._analytics is not None:
            self._analytics.record_workflow_execution(execution)

        elapsed = (execution.end_time - execution.start_time).total_seconds()
        logger.info(
            f"Workflow {self.workflow.name} finished with status "
            f"{execution.status.value} in {elapsed:.2f}s (execution_id={execution.id})"
        )
        return execution

    def get_status(self) -> Optional[WorkflowExecution]:
        """Return a snapshot of the current (or last) execution."""
        if self._execution is None:
            return None
        snapshot = self._execution.model_copy(deep=True)
        snapshot.step_results = [r.model_copy(deep=True) for r in self._results.values()]
        return snapshot

    # ------------------------------------------------------------------
    # Scheduling
    def _check_definition(self) -> None:
        duplicates = duplicate_step_ids(self.workflow)
        if duplicates:
            raise WorkflowDefinitionError(
                f"Workflow {self.workflow.id} has duplicate step ids: "
                + ", ".join(duplicates)
            )
        if self._config.strict_validation:
            issues = validate_workflow(self.workflow)
            if issues:
                raise WorkflowDefinitionError(
                    "; ".join(issue.message for issue in issues)
                )

    def _seed_completed(self, completed_results: Sequence[StepResult]) -> None:
        known = set(self.workflow.step_ids)
        resumed: List[str] = []
        for prior in completed_results:
            if prior.status != StepStatus.COMPLETED or prior.step_id not in known:
                continue
            self._results[prior.step_id] = prior.model_copy(deep=True)
            self.context.previous_step_results[prior.step_id] = dict(
                prior.tool_results
            )
            resumed.append(prior.step_id)
        if resumed:
            self._execution.metadata["resumed_steps"] = resumed
            logger.info(f"Resuming with completed steps: {', '.join(resumed)}")

    async def _run_steps(self) -> None:
        pending = [s for s in self.workflow.steps if s.id not in self._results]
        while pending:
            skipped_any = self._skip_unsatisfiable(pending)
            ready = [s for s in pending if self._dependencies_met(s)]
            if not ready:
                if skipped_any:
                    continue
                for step in pending:
                    self._skip(step, "dependencies can never be satisfied (circular dependency)")
                break

            batch = self._next_batch(ready)
            for step in batch:
                pending.remove(step)
            await self._run_batch(batch)

            failed = [
                s for s in batch if self._results[s.id].status == StepStatus.FAILED
            ]
            if failed:
                first = self._results[failed[0].id]
                logger.error(f"Step {first.step_id} failed, stopping workflow")
                self._execution.status = ExecutionStatus.FAILED
                self._execution.error_message = f"Step {first.step_id} failed: {first.error}"
                # after the batch settled: the snapshot holds every completed sibling
                await self._checkpoint(
                    first.step_id, CheckpointType.ERROR_RECOVERY, error=first.error
                )
                for step in pending:
                    self._skip(step, f"not reached: step {first.step_id!r} failed")
                break

    def _skip_unsatisfiable(self, pending: List[WorkflowStep]) -> bool:
        known = set(self.workflow.step_ids)
        skipped = False
        for step in list(pending):
            reason = None
            for dep in step.dependencies:
                if dep not in known:
                    reason = f"depends on unknown step {dep!r}"
                elif dep in self._results and self._results[dep].status in (
                    StepStatus.FAILED,
                    StepStatus.SKIPPED,
                ):
                    reason = f"dependency {dep!r} was {self._results[dep].status.value}"
                if reason:
                    break
            if reason:
                self._skip(step, reason)
                pending.remove(step)
                skipped = True
        return skipped

    def _dependencies_met(self, step: WorkflowStep) -> bool:
        return all(
            dep in self._results and self._results[dep].status == StepStatus.COMPLETED
            for dep in step.dependencies
        )

    @staticmethod
    def _next_batch(ready: List[WorkflowStep]) -> List[WorkflowStep]:
        if not ready[0].parallel:
            return [ready[0]]
        batch: List[WorkflowStep] = []
        for step in ready:
            if not step.parallel:
                break
            batch.append(step)
        return batch

    async def _run_batch(self, batch: List[WorkflowStep]) -> None:
        if len(batch) == 1:
            await self._execute_step(batch[0])
            return
        logger.info(f"Executing {len(batch)} steps in parallel: {[s.id for s in batch]}")
        outcomes = await asyncio.gather(
            *(self._execute_step(step) for step in batch), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

    def _skip(self, step: WorkflowStep, reason: str) -> None:
        logger.info(f"Skipping step {step.id}: {reason}")
        result = StepResult(step_id=step.id, dependencies=list(step.dependencies))
        result.transition(StepStatus.SKIPPED, skip_reason=reason)
        self._results[step.id] = result

    # ------------------------------------------------------------------
    # Step execution
    async def _execute_step(self, step: WorkflowStep) -> None:
        logger.info(f"Executing step: {step.name} ({step.id})")
        result = StepResult(step_id=step.id, dependencies=list(step.dependencies))
        result.transition(StepStatus.RUNNING, start_time=utcnow())
        self._results[step.id] = result
        self._execution.current_step = step.id

        await self._checkpoint(step.id, CheckpointType.STEP_START)

        tool_results: Dict[str, ToolExecutionResult] = {}
        failure: Optional[str] = None
        for invocation in step.tools:
            tool_result = await self._invoke_tool(invocation)
            tool_results[self._result_key(tool_results, invocation.name)] = tool_result
            if tool_result.success:
                self.context.previous_step_results[invocation.name] = tool_result
            elif invocation.required:
                failure = f"Required tool {invocation.name} failed: {tool_result.error}"
                break
            else:
                logger.warning(
                    f"Optional tool {invocation.name} failed in step {step.id}: "
                    f"{tool_result.error}"
                )

        if failure:
            result.transition(StepStatus.FAILED, tool_results=tool_results, error=failure)
            logger.error(f"Step {step.name} failed: {failure}")
        else:
            result.transition(
                StepStatus.COMPLETED,
                tool_results=tool_results,
                data={k: v.data for k, v in tool_results.items() if v.success},
            )
            self.context.previous_step_results[step.id] = dict(tool_results)
            logger.info(f"Step {step.name} completed in {result.duration:.2f}s")
            await self._checkpoint(step.id, CheckpointType.STEP_COMPLETE)

        await self._save_progress()

    @staticmethod
    def _result_key(existing: Dict[str, ToolExecutionResult], name: str) -> str:
        if name not in existing:
            return name
        index = 2
        while f"{name}#{index}" in existing:
            index += 1
        return f"{name}#{index}"

    async def _invoke_tool(self, invocation: ToolInvocation) -> ToolExecutionResult:
        started = time.perf_counter()
        scope = build_template_scope(self.context, self._results.values())
        params = resolve_params(invocation.params, scope)
        cache_key = self._cache_key(invocation.name, params)

        if self._config.cache_enabled and cache_key in self.context.cache:
            logger.debug(f"Cache hit for {invocation.name}")
            outcome = ToolExecutionResult(
                tool_name=invocation.name,
                success=True,
                data=self.context.cache[cache_key],
                cached=True,
                duration=time.perf_counter() - started,
            )
            self._record_tool(outcome)
            return outcome

        logger.debug(f"Executing tool: {invocation.name} {params}")
        timeout = self._config.tool_timeout
        try:
            call = self._tools.execute(invocation.name, params)
            raw = await (asyncio.wait_for(call, timeout) if timeout else call)
        except UnknownToolError:
            raise
        except asyncio.TimeoutError:
            error = ToolTimeoutError(invocation.name, f"timed out after {timeout}s")
            logger.error(str(error))
            raw = ToolExecutionResult(
                tool_name=invocation.name, success=False, error=str(error)
            )
        except Exception as exc:
            logger.error(f"Tool {invocation.name} failed: {exc}")
            raw = ToolExecutionResult(
                tool_name=invocation.name,
                success=False,
                error=str(exc) or exc.__class__.__name__,
            )

        if not isinstance(raw, ToolExecutionResult):
            raw = ToolExecutionResult(tool_name=invocation.name, success=True, data=raw)
        outcome = raw.model_copy(
            update={
                "tool_name": invocation.name,
                "cached": False,
                "duration": time.perf_counter() - started,
            }
        )
        if outcome.success and self._config.cache_enabled:
            self.context.cache[cache_key] = outcome.data
        self._record_tool(outcome)
        return outcome

    @staticmethod
    def _cache_key(tool_name: str, params: dict) -> str:
        canonical = json.dumps(_canonical(params), sort_keys=True, default=str)
        return f"{tool_name}:{canonical}"

    def _record_tool(self, outcome: ToolExecutionResult) -> None:
        if self._analytics is not None:
            self._analytics.record_tool_execution(outcome)

    # ------------------------------------------------------------------
    # Persistence
    def _sync_results(self) -> None:
        self._execution.step_results = list(self._results.values())

    async def _checkpoint(
        self, step_id: str, checkpoint_type: CheckpointType, error: Optional[str] = None
    ) -> None:
        results = list(self._results.values())
        if checkpoint_type == CheckpointType.ERROR_RECOVERY:
            results = [r for r in results if r.status == StepStatus.COMPLETED]
        snapshot = CheckpointSnapshot(
            step_id=step_id,
            step_results=[r.model_copy(deep=True) for r in results],
            previous_step_results=to_jsonable_python(
                self.context.previous_step_results, fallback=str
            ),
            error=error,
        )
        if checkpoint_type != CheckpointType.STEP_START:
            self._execution.checkpoint_data = snapshot.model_dump(mode="json")
        try:
            await self._repository.save_checkpoint(
                self._execution.id, snapshot, checkpoint_type
            )
        except Exception as exc:
            logger.warning(
                f"Failed to save {checkpoint_type.value} checkpoint for step {step_id}: {exc}"
            )

    async def _save_progress(self) -> None:
        self._sync_results()
        try:
            await self._repository.save_execution(self._execution)
        except Exception as exc:
            logger.warning(
                f"Failed to save progress of execution {self._execution.id}: {exc}"
            )
