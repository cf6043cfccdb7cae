"""Resolution of ``{{name}}`` placeholders in tool parameters."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, Mapping

from .contracts import StepResult, ToolExecutionResult, WorkflowContext

logger = logging.getLogger(__name__)

_WHOLE = re.compile(r"^\{\{\s*([\w.\-]+)\s*\}\}$")
_INLINE = re.compile(r"\{\{\s*([\w.\-]+)\s*\}\}")

_MISSING = object()


def _merge_output(target: Dict[str, Any], key: str, value: Any) -> None:
    if isinstance(value, ToolExecutionResult):
        value = value.data
    elif isinstance(value, Mapping) and "data" in value and "success" in value:
        value = value["data"]
    target[key] = value
    if isinstance(value, Mapping):
        target.update(value)


def build_template_scope(
    context: WorkflowContext, step_results: Iterable[StepResult]
) -> Dict[str, Any]:
    """Flatten everything a placeholder may refer to into one mapping.

    Later sources win: tool outputs of finished steps, then
    ``previous_step_results``, then the caller's ``variables``.
    """
    scope: Dict[str, Any] = {
        "userQuery": context.user_query,
        "user_query": context.user_query,
    }
    for result in step_results:
        for tool_name, tool_result in result.tool_results.items():
            if tool_result.success:
                _merge_output(scope, tool_name, tool_result)
    for key, value in context.previous_step_results.items():
        if isinstance(value, Mapping) and value and all(
            isinstance(v, ToolExecutionResult) for v in value.values()
        ):
            # per-step entry: {tool_name: ToolExecutionResult}
            scope[key] = {k: v.data for k, v in value.items()}
            continue
        _merge_output(scope, key, value)
    scope.update(context.variables)
    return scope


def _lookup(scope: Mapping[str, Any], name: str) -> Any:
    if name in scope:
        return scope[name]
    current: Any = scope
    for part in name.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def resolve_value(value: Any, scope: Mapping[str, Any]) -> Any:
    """Resolve placeholders in ``value``, recursing into dicts and lists.

    A string that is a single placeholder is replaced by the referenced
    object itself; placeholders embedded in longer strings are formatted in.
    Unknown names are left untouched.
    """
    if isinstance(value, dict):
        return {k: resolve_value(v, scope) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(v, scope) for v in value]
    if not isinstance(value, str) or "{{" not in value:
        return value

    whole = _WHOLE.match(value)
    if whole:
        found = _lookup(scope, whole.group(1))
        if found is _MISSING:
            logger.warning(f"Template variable not found: {whole.group(1)}")
            return value
        return found

    def _replace(match: re.Match) -> str:
        found = _lookup(scope, match.group(1))
        if found is _MISSING:
            logger.warning(f"Template variable not found: {match.group(1)}")
            return match.group(0)
        return str(found)

    return _INLINE.sub(_replace, value)


def resolve_params(params: Mapping[str, Any], scope: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: resolve_value(value, scope) for key, value in params.items()}
