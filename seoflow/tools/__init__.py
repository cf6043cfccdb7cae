"""Tool layer: executor interface, registry and parameter schemas."""

from .base import ToolExecutor
from .registry import RegistryToolExecutor, ToolHandler, ToolRegistry
from .schemas import TOOL_PARAM_SCHEMAS, ToolParams

__all__ = [
    "ToolExecutor",
    "ToolRegistry",
    "ToolHandler",
    "RegistryToolExecutor",
    "TOOL_PARAM_SCHEMAS",
    "ToolParams",
]
