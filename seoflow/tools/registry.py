"""Name-based tool registry with schema validated invocation."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..contracts import ToolExecutionResult
from ..errors import ToolParamsError, UnknownToolError
from .base import ToolExecutor
from .schemas import TOOL_PARAM_SCHEMAS

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


class ToolRegistry:
    """Maps tool names to handlers and parameter schemas.

    A handler receives the validated parameters as a plain dict. Every
    registered tool must have a schema, either from ``TOOL_PARAM_SCHEMAS`` or
    passed explicitly.
    """

    def __init__(
        self, schemas: Optional[Mapping[str, Type[BaseModel]]] = None
    ) -> None:
        self._schemas: Dict[str, Type[BaseModel]] = dict(
            TOOL_PARAM_SCHEMAS if schemas is None else schemas
        )
        self._handlers: Dict[str, ToolHandler] = {}

    def register(
        self,
        name: str,
        handler: Optional[ToolHandler] = None,
        *,
        params_model: Optional[Type[BaseModel]] = None,
    ):
        """Register ``handler`` under ``name``.

        Can be used directly or as a decorator::

            @registry.register("domain_overview")
            async def domain_overview(params): ...
        """

        def decorator(func: ToolHandler) -> ToolHandler:
            if params_model is not None:
                self._schemas[name] = params_model
            if name not in self._schemas:
                raise ValueError(f"No parameter schema known for tool {name!r}")
            if name in self._handlers:
                logger.warning(f"Replacing handler for tool {name}")
            self._handlers[name] = func
            return func

        if handler is not None:
            return decorator(handler)
        return decorator

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def get_handler(self, name: str) -> ToolHandler:
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def validate_params(self, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Return ``params`` validated and normalised by the tool's schema."""
        schema = self._schemas.get(name)
        if schema is None:
            raise UnknownToolError(name)
        try:
            return schema.model_validate(params).model_dump()
        except ValidationError as exc:
            raise ToolParamsError(name, str(exc)) from exc


class RegistryToolExecutor(ToolExecutor):
    """Executes tools registered in a ``ToolRegistry``."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(
        self, tool_name: str, params: Dict[str, Any]
    ) -> ToolExecutionResult:
        handler = self._registry.get_handler(tool_name)
        validated = self._registry.validate_params(tool_name, params)
        data = handler(validated)
        if inspect.isawaitable(data):
            data = await data
        return ToolExecutionResult(tool_name=tool_name, success=True, data=data)
