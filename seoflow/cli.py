"""Command line interface for seoflow workflows and executions."""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from pydantic import ValidationError

from seoflow.aggregation import aggregate_execution, format_aggregated_results
from seoflow.config import load_config
from seoflow.contracts import WorkflowContext, WorkflowExecution
from seoflow.definitions import list_workflows, resolve_workflow
from seoflow.engine import WorkflowEngine
from seoflow.errors import SeoflowError
from seoflow.persistence import ExecutionRepository, close_repository, get_repository
from seoflow.recovery import WorkflowRecovery
from seoflow.tools import RegistryToolExecutor, ToolExecutor, ToolRegistry
from seoflow.validation import validate_workflow

T = TypeVar("T")

app = typer.Typer(help="CLI for seoflow workflows")

# Command groups
workflow_app = typer.Typer(help="Commands for workflow definitions")
execution_app = typer.Typer(help="Commands for stored executions")

app.add_typer(workflow_app, name="workflow")
app.add_typer(execution_app, name="execution")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """seoflow CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_definition(ref: str):
    try:
        return resolve_workflow(ref)
    except (OSError, ValidationError, SeoflowError) as exc:
        typer.secho(f"Cannot load workflow {ref}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _load_tool_executor(target: str) -> ToolExecutor:
    """Import ``module:attribute`` and turn it into a ``ToolExecutor``.

    The attribute may be an executor, a ``ToolRegistry``, or a zero-argument
    callable returning either.
    """
    module_name, _, attr = target.partition(":")
    if not attr:
        raise typer.BadParameter("expected MODULE:ATTRIBUTE", param_hint="--tools")
    obj = getattr(importlib.import_module(module_name), attr)
    if callable(obj) and not isinstance(obj, (ToolExecutor, ToolRegistry)):
        obj = obj()
    if isinstance(obj, ToolRegistry):
        obj = RegistryToolExecutor(obj)
    if not isinstance(obj, ToolExecutor):
        raise typer.BadParameter(
            f"{target} is not a ToolExecutor or ToolRegistry", param_hint="--tools"
        )
    return obj


def _parse_vars(values: List[str]) -> dict:
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--var")
        variables[key] = value
    return variables


def _echo_execution(execution: WorkflowExecution) -> None:
    typer.echo(
        f"Execution {execution.id}: {execution.status.value} "
        f"(workflow {execution.workflow_id})"
    )
    if execution.error_message:
        typer.echo(f"Error: {execution.error_message}")
    for result in execution.step_results:
        line = f"- {result.step_id}: {result.status.value}"
        if result.duration is not None:
            line += f" ({result.duration:.2f}s)"
        if result.error:
            line += f" error={result.error}"
        if result.skip_reason:
            line += f" reason={result.skip_reason}"
        typer.echo(line)


# ----------------------------------------------------------------------
# workflow commands


@workflow_app.command("list")
def workflow_list() -> None:
    """List the built-in workflow definitions."""
    for wf in list_workflows():
        typer.echo(f"{wf.id}\t{wf.name}\t{len(wf.steps)} steps")


@workflow_app.command("show")
def workflow_show(ref: str) -> None:
    """
    Show the steps of a workflow.

    Args:
        ref: Built-in workflow id or path to a YAML/JSON definition

    Example:
        seoflow workflow show competitor-analysis
    """
    wf = _load_definition(ref)
    typer.echo(f"{wf.name} ({wf.id})")
    if wf.description:
        typer.echo(wf.description)
    for step in wf.steps:
        flags = " [parallel]" if step.parallel else ""
        deps = f" after {', '.join(step.dependencies)}" if step.dependencies else ""
        typer.echo(f"- {step.id}: {step.name}{flags}{deps}")
        for tool in step.tools:
            marker = "*" if tool.required else " "
            typer.echo(f"    {marker} {tool.name}")


@workflow_app.command("validate")
def workflow_validate(ref: str) -> None:
    """Check a workflow for duplicate ids, unknown dependencies and cycles."""
    wf = _load_definition(ref)
    issues = validate_workflow(wf)
    if not issues:
        typer.echo(f"{wf.id}: OK")
        return
    for issue in issues:
        typer.secho(f"{issue.kind}: {issue.message}", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@workflow_app.command("run")
def workflow_run(
    ref: str,
    tools: str = typer.Option(..., help="MODULE:ATTRIBUTE providing the tool executor"),
    query: str = typer.Option("", help="User query passed to the workflow"),
    var: List[str] = typer.Option([], help="Workflow variable as KEY=VALUE"),
    user_id: Optional[str] = typer.Option(None, help="Owning user id"),
    conversation_id: Optional[str] = typer.Option(None, help="Conversation id"),
) -> None:
    """
    Execute a workflow and store the execution.

    Example:
        seoflow workflow run competitor-analysis --tools myapp.tools:registry \\
            --var domain=example.com --var keyword="seo tools"
    """
    wf = _load_definition(ref)
    executor = _load_tool_executor(tools)
    context = WorkflowContext(user_query=query, variables=_parse_vars(var))
    config = load_config()

    async def _run() -> WorkflowExecution:
        repository = get_repository(config=config)
        try:
            async with executor:
                engine = WorkflowEngine(
                    wf,
                    context,
                    executor,
                    repository=repository,
                    conversation_id=conversation_id,
                    user_id=user_id,
                    config=config.engine,
                )
                return await engine.execute()
        finally:
            await close_repository(repository)

    execution = asyncio.run(_run())
    _echo_execution(execution)
    if execution.status.value != "completed":
        raise typer.Exit(code=1)


# ----------------------------------------------------------------------
# execution commands


def _with_repository(operation: Callable[[ExecutionRepository], Awaitable[T]]) -> T:
    """Run ``operation`` against a fresh repository and close it afterwards."""
    repo = get_repository()

    async def _run() -> T:
        try:
            return await operation(repo)
        finally:
            await close_repository(repo)

    return asyncio.run(_run())


@execution_app.command("list")
def execution_list(
    user_id: Optional[str] = typer.Option(None, help="Only show this user's executions"),
    limit: int = typer.Option(50, help="Maximum number of executions"),
) -> None:
    """List stored executions, newest first."""
    executions = _with_repository(
        lambda repo: repo.list_executions(user_id=user_id, limit=limit)
    )
    if not executions:
        typer.echo("No executions found")
        return
    for execution in executions:
        typer.echo(f"{execution.id}\t{execution.workflow_id}\t{execution.status.value}")


@execution_app.command("show")
def execution_show(execution_id: str) -> None:
    """Show status and step results of an execution."""
    execution = _with_repository(lambda repo: repo.load_execution(execution_id))
    if execution is None:
        typer.echo("Execution not found")
        raise typer.Exit(code=1)
    _echo_execution(execution)


@execution_app.command("summary")
def execution_summary(execution_id: str) -> None:
    """Summarise the tool results, insights and recommendations of an execution."""
    execution = _with_repository(lambda repo: repo.load_execution(execution_id))
    if execution is None:
        typer.echo("Execution not found")
        raise typer.Exit(code=1)
    typer.echo(format_aggregated_results(aggregate_execution(execution)))


@execution_app.command("checkpoints")
def execution_checkpoints(execution_id: str) -> None:
    """List the checkpoints recorded for an execution."""
    checkpoints = _with_repository(lambda repo: repo.list_checkpoints(execution_id))
    if not checkpoints:
        typer.echo("No checkpoints found")
        return
    for record in checkpoints:
        completed = sum(
            1 for r in record.snapshot.step_results if r.status.value == "completed"
        )
        typer.echo(
            f"{record.id}\t{record.checkpoint_type.value}\t{record.snapshot.step_id}"
            f"\t{completed} completed\t{record.created_at.isoformat()}"
        )


@execution_app.command("recover")
def execution_recover(execution_id: str) -> None:
    """Report whether an execution can be resumed and from which step."""
    result = _with_repository(
        lambda repo: WorkflowRecovery(repo).recover_execution(execution_id)
    )
    if result.can_recover:
        typer.echo(
            f"Execution {execution_id} can resume after step {result.last_successful_step}"
        )
        typer.echo(f"Completed steps: {', '.join(result.completed_steps)}")
    else:
        typer.echo(f"Execution {execution_id} cannot be resumed; restart it from scratch")
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
