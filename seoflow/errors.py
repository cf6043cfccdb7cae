"""Exception hierarchy for seoflow."""

from __future__ import annotations


class SeoflowError(Exception):
    """Base class for all seoflow errors."""


class WorkflowDefinitionError(SeoflowError):
    """Raised when a workflow definition cannot be executed as written."""


class StepStateError(SeoflowError):
    """Raised on an attempt to change a step result that already finished."""


class ToolError(SeoflowError):
    """Raised by the tool layer when an invocation cannot be carried out."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name


class UnknownToolError(ToolError):
    """The requested tool is not registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, "tool is not registered")


class ToolParamsError(ToolError):
    """Parameters did not match the tool's schema."""


class ToolTimeoutError(ToolError):
    """The tool call did not finish within the configured timeout."""


class PersistenceError(SeoflowError):
    """Raised by repositories when a record cannot be stored or read."""
