"""seoflow: dependency-aware workflow engine for SEO research assistants."""

from .contracts import (
    ExecutionStatus,
    StepResult,
    StepStatus,
    ToolExecutionResult,
    ToolInvocation,
    Workflow,
    WorkflowContext,
    WorkflowExecution,
    WorkflowStep,
)
from .engine import WorkflowEngine
from .persistence import get_repository
from .recovery import RecoveryResult, WorkflowRecovery
from .tools import RegistryToolExecutor, ToolExecutor, ToolRegistry

__version__ = "0.1.0"
__all__ = [
    "ExecutionStatus",
    "StepResult",
    "StepStatus",
    "ToolExecutionResult",
    "ToolInvocation",
    "Workflow",
    "WorkflowContext",
    "WorkflowExecution",
    "WorkflowStep",
    "WorkflowEngine",
    "WorkflowRecovery",
    "RecoveryResult",
    "ToolExecutor",
    "ToolRegistry",
    "RegistryToolExecutor",
    "get_repository",
]
