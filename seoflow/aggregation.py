"""Aggregation of tool results into summaries, insights and recommendations."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from pydantic import BaseModel, Field

from .contracts import StepResult, ToolExecutionResult, WorkflowExecution


class AggregatedMetrics(BaseModel):
    total_tools: int = 0
    successful_tools: int = 0
    failed_tools: int = 0
    cached_tools: int = 0
    total_duration: float = 0.0
    average_duration: float = 0.0


class AggregatedResult(BaseModel):
    """Combined view over the tool results of one or more steps."""

    summary: str = ""
    insights: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)
    metrics: AggregatedMetrics = Field(default_factory=AggregatedMetrics)
    recommendations: List[str] = Field(default_factory=list)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def aggregate_tool_results(
    tool_results: Mapping[str, ToolExecutionResult], include_summary: bool = True
) -> AggregatedResult:
    """Fold ``tool_results`` into counts, merged data and de-duplicated advice.

    Only successful results contribute data, durations, ``insights`` and
    ``recommendations``; the latter two are read from dict payloads.
    """
    metrics = AggregatedMetrics(total_tools=len(tool_results))
    insights: List[str] = []
    recommendations: List[str] = []
    data: Dict[str, Any] = {}

    for name, result in tool_results.items():
        if not result.success:
            metrics.failed_tools += 1
            continue
        metrics.successful_tools += 1
        if result.cached:
            metrics.cached_tools += 1
        metrics.total_duration += result.duration
        if isinstance(result.data, Mapping):
            insights.extend(_as_list(result.data.get("insights")))
            recommendations.extend(_as_list(result.data.get("recommendations")))
        data[name] = result.data

    if metrics.total_tools:
        metrics.average_duration = metrics.total_duration / metrics.total_tools

    summary = ""
    if include_summary:
        summary = (
            f"Executed {metrics.total_tools} tools: {metrics.successful_tools} "
            f"successful, {metrics.failed_tools} failed. "
        )
        if metrics.cached_tools:
            rate = _percent(metrics.cached_tools, metrics.total_tools)
            summary += f"Cache hit rate: {rate}%. "
        summary += f"Average execution time: {metrics.average_duration:.2f}s."

    return AggregatedResult(
        summary=summary,
        insights=_unique(insights),
        data=data,
        metrics=metrics,
        recommendations=_unique(recommendations),
    )


def merge_step_results(step_results: Iterable[StepResult]) -> AggregatedResult:
    """Aggregate the tool results of several steps, keyed ``step_id:tool``."""
    merged: Dict[str, ToolExecutionResult] = {}
    for step in step_results:
        for name, result in step.tool_results.items():
            merged[f"{step.step_id}:{name}"] = result
    return aggregate_tool_results(merged)


def aggregate_execution(execution: WorkflowExecution) -> AggregatedResult:
    return merge_step_results(execution.step_results)


def extract_key_metrics(aggregated: AggregatedResult) -> Dict[str, float]:
    metrics = aggregated.metrics
    return {
        "total_tools": metrics.total_tools,
        "success_rate": _percent(metrics.successful_tools, metrics.total_tools),
        "cache_hit_rate": _percent(metrics.cached_tools, metrics.total_tools),
        "average_duration": metrics.average_duration,
        "total_duration": metrics.total_duration,
    }


def format_aggregated_results(aggregated: AggregatedResult, limit: int = 5) -> str:
    """Render ``aggregated`` as Markdown, keeping the first ``limit`` items."""
    lines: List[str] = []
    if aggregated.summary:
        lines += [aggregated.summary, ""]
    if aggregated.insights:
        lines.append("**Key Insights:**")
        lines += [f"{i}. {item}" for i, item in enumerate(aggregated.insights[:limit], 1)]
        lines.append("")
    if aggregated.recommendations:
        lines.append("**Recommendations:**")
        lines += [
            f"{i}. {item}"
            for i, item in enumerate(aggregated.recommendations[:limit], 1)
        ]
        lines.append("")

    key = extract_key_metrics(aggregated)
    lines += [
        "**Performance:**",
        f"- Success Rate: {key['success_rate']}%",
        f"- Cache Hit Rate: {key['cache_hit_rate']}%",
        f"- Total Duration: {key['total_duration']:.2f}s",
        f"- Average Tool Duration: {key['average_duration']:.2f}s",
    ]
    return "\n".join(lines)


__all__ = [
    "AggregatedMetrics",
    "AggregatedResult",
    "aggregate_execution",
    "aggregate_tool_results",
    "extract_key_metrics",
    "format_aggregated_results",
    "merge_step_results",
]
