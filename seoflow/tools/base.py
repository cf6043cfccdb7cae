"""Tool executor interface consumed by the workflow engine."""

from __future__ import annotations

import abc
from typing import Any, Dict

from ..contracts import ToolExecutionResult


class ToolExecutor(metaclass=abc.ABCMeta):
    """Abstract gateway to the external tools a workflow can call.

    Executors that hold network clients open them in ``connect`` and release
    them in ``close``. The engine never manages this lifecycle; the owner of
    the executor does, typically with ``async with``.
    """

    async def connect(self) -> None:
        """Open client connections (no-op by default)."""
        pass

    async def close(self) -> None:
        """Release client connections (no-op by default)."""
        pass

    async def __aenter__(self) -> "ToolExecutor":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abc.abstractmethod
    async def execute(
        self, tool_name: str, params: Dict[str, Any]
    ) -> ToolExecutionResult:
        """Invoke ``tool_name`` with ``params``.

        Implementations either return a ``ToolExecutionResult`` (``success``
        may be ``False``) or raise; the engine treats a raised exception as a
        failed call.
        """
        raise NotImplementedError
