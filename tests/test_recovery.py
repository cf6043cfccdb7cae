"""Recovery of failed executions."""

import pytest

from seoflow.contracts import (
    CheckpointSnapshot,
    CheckpointType,
    ExecutionStatus,
    StepResult,
    StepStatus,
    WorkflowExecution,
)
from seoflow.engine import WorkflowEngine
from seoflow.recovery import WorkflowRecovery

from tests.fixtures.tools import FakeToolExecutor
from tests.fixtures.workflows import make_step, make_workflow


def _execution(*statuses):
    return WorkflowExecution(
        id="exec-1",
        workflow_id="test-workflow",
        status=ExecutionStatus.FAILED,
        step_results=[
            StepResult(step_id=f"step{i}", status=status)
            for i, status in enumerate(statuses, start=1)
        ],
    )


@pytest.mark.asyncio
async def test_recover_after_first_step_completed(repository):
    await repository.save_execution(_execution(StepStatus.COMPLETED, StepStatus.FAILED))

    result = await WorkflowRecovery(repository).recover_execution("exec-1")

    assert result.can_recover is True
    assert result.last_successful_step == "step1"
    assert result.completed_steps == ["step1"]


@pytest.mark.asyncio
async def test_cannot_recover_when_first_step_failed(repository):
    await repository.save_execution(_execution(StepStatus.FAILED))

    result = await WorkflowRecovery(repository).recover_execution("exec-1")

    assert result.can_recover is False
    assert result.last_successful_step is None
    assert result.completed_steps == []


@pytest.mark.asyncio
async def test_completed_steps_without_dependencies_survive_a_failure(repository):
    await repository.save_execution(
        _execution(
            StepStatus.COMPLETED,
            StepStatus.SKIPPED,
            StepStatus.COMPLETED,
            StepStatus.FAILED,
            StepStatus.COMPLETED,
        )
    )

    result = await WorkflowRecovery(repository).recover_execution("exec-1")

    assert result.completed_steps == ["step1", "step3", "step5"]
    assert result.last_successful_step == "step5"


@pytest.mark.asyncio
async def test_steps_after_a_failed_dependency_are_not_recovered(repository):
    execution = _execution(StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.COMPLETED)
    execution.step_results[1].dependencies = ["step1"]
    execution.step_results[2].dependencies = ["step2"]
    await repository.save_execution(execution)

    result = await WorkflowRecovery(repository).recover_execution("exec-1")

    assert result.completed_steps == ["step1"]


@pytest.mark.asyncio
async def test_unknown_execution_cannot_recover(repository):
    result = await WorkflowRecovery(repository).recover_execution("missing")

    assert result.can_recover is False
    assert result.execution_id == "missing"


@pytest.mark.asyncio
async def test_falls_back_to_checkpoints_without_execution_record(repository):
    snapshot = CheckpointSnapshot(
        step_id="step1",
        step_results=[StepResult(step_id="step1", status=StepStatus.COMPLETED)],
    )
    await repository.save_checkpoint("exec-2", snapshot, CheckpointType.STEP_COMPLETE)
    recovery = WorkflowRecovery(repository)

    result = await recovery.recover_execution("exec-2")
    seeded = await recovery.completed_results("exec-2")

    assert result.can_recover is True
    assert result.last_successful_step == "step1"
    assert [r.step_id for r in seeded] == ["step1"]


@pytest.mark.asyncio
async def test_resume_does_not_repeat_completed_steps(
    linear_workflow, context, repository, engine_config
):
    failing = FakeToolExecutor(failures={"tool_b": "API error"})
    first = await WorkflowEngine(
        linear_workflow, context, failing, repository=repository, config=engine_config
    ).execute()
    assert first.status == ExecutionStatus.FAILED

    healthy = FakeToolExecutor()
    engine = WorkflowEngine(
        linear_workflow, context, healthy, repository=repository, config=engine_config
    )
    resumed = await WorkflowRecovery(repository).resume(engine, first.id)

    assert resumed.id == first.id
    assert resumed.status == ExecutionStatus.COMPLETED
    assert resumed.metadata["resumed_steps"] == ["step1"]
    assert healthy.called("tool_a") == 0
    assert [name for name, _ in healthy.calls] == ["tool_b", "tool_c"]
    assert [r.status for r in resumed.step_results] == [StepStatus.COMPLETED] * 3

    stored = await repository.load_execution(first.id)
    assert stored.status == ExecutionStatus.COMPLETED


@pytest.mark.asyncio
async def test_resume_without_progress_runs_from_start(
    linear_workflow, context, repository, engine_config
):
    executor = FakeToolExecutor()
    engine = WorkflowEngine(
        linear_workflow, context, executor, repository=repository, config=engine_config
    )

    execution = await WorkflowRecovery(repository).resume(engine, "never-saved")

    assert execution.id == "never-saved"
    assert execution.status == ExecutionStatus.COMPLETED
    assert executor.called("tool_a") == 1


@pytest.mark.asyncio
async def test_failure_in_parallel_batch_keeps_completed_siblings(
    context, repository, engine_config
):
    workflow = make_workflow(
        make_step("a", tool="tool_a", parallel=True),
        make_step("b", tool="tool_b", parallel=True),
        make_step("c", tool="tool_c", parallel=True),
        make_step("report", "a", "b", "c", tool="tool_d"),
    )
    failing = FakeToolExecutor(failures={"tool_a": "API error"}, delay=0.01)
    first = await WorkflowEngine(
        workflow, context, failing, repository=repository, config=engine_config
    ).execute()
    assert first.status == ExecutionStatus.FAILED
    assert first.get_step_result("b").status == StepStatus.COMPLETED
    assert first.get_step_result("c").status == StepStatus.COMPLETED

    recovery = WorkflowRecovery(repository)
    result = await recovery.recover_execution(first.id)
    assert result.can_recover is True
    assert set(result.completed_steps) == {"b", "c"}

    info = await repository.resume_from_checkpoint(first.id)
    assert info.can_resume is True
    assert info.checkpoint_type == CheckpointType.ERROR_RECOVERY
    assert set(info.completed_steps) == {"b", "c"}

    healthy = FakeToolExecutor()
    engine = WorkflowEngine(
        workflow, context, healthy, repository=repository, config=engine_config
    )
    resumed = await recovery.resume(engine, first.id)

    assert resumed.status == ExecutionStatus.COMPLETED
    assert [name for name, _ in healthy.calls] == ["tool_a", "tool_d"]
