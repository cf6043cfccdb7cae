import pytest

from seoflow.aggregation import (
    aggregate_execution,
    aggregate_tool_results,
    extract_key_metrics,
    format_aggregated_results,
    merge_step_results,
)
from seoflow.contracts import StepResult, StepStatus, ToolExecutionResult, WorkflowExecution


def _results():
    return {
        "domain_overview": ToolExecutionResult(
            tool_name="domain_overview",
            success=True,
            duration=1.0,
            data={"traffic": 1000, "insights": ["Traffic grew 20%"]},
        ),
        "google_rankings": ToolExecutionResult(
            tool_name="google_rankings",
            success=True,
            cached=True,
            data={
                "insights": "Traffic grew 20%",
                "recommendations": ["Target long-tail keywords"],
            },
        ),
        "perplexity_search": ToolExecutionResult(
            tool_name="perplexity_search", success=False, error="timeout", duration=3.0
        ),
        "jina_reader": ToolExecutionResult(
            tool_name="jina_reader", success=True, duration=1.0, data="# Page"
        ),
    }


def test_aggregate_counts_and_merges_data():
    aggregated = aggregate_tool_results(_results())

    metrics = aggregated.metrics
    assert metrics.total_tools == 4
    assert metrics.successful_tools == 3
    assert metrics.failed_tools == 1
    assert metrics.cached_tools == 1
    assert metrics.total_duration == 2.0
    assert metrics.average_duration == 0.5
    assert aggregated.insights == ["Traffic grew 20%"]
    assert aggregated.recommendations == ["Target long-tail keywords"]
    assert set(aggregated.data) == {"domain_overview", "google_rankings", "jina_reader"}
    assert aggregated.data["jina_reader"] == "# Page"
    assert aggregated.summary == (
        "Executed 4 tools: 3 successful, 1 failed. Cache hit rate: 25%. "
        "Average execution time: 0.50s."
    )


def test_aggregate_without_results():
    aggregated = aggregate_tool_results({}, include_summary=False)

    assert aggregated.summary == ""
    assert aggregated.metrics.average_duration == 0.0
    assert extract_key_metrics(aggregated)["success_rate"] == 0


def test_merge_step_results_prefixes_step_ids():
    tool = ToolExecutionResult(tool_name="jina_reader", success=True, data={})
    steps = [
        StepResult(step_id="extract", status=StepStatus.COMPLETED, tool_results={"jina_reader": tool}),
        StepResult(step_id="compare", status=StepStatus.COMPLETED, tool_results={"jina_reader": tool}),
    ]

    aggregated = merge_step_results(steps)

    assert sorted(aggregated.data) == ["compare:jina_reader", "extract:jina_reader"]
    assert aggregated.metrics.total_tools == 2


def test_aggregate_execution_and_key_metrics():
    execution = WorkflowExecution(
        workflow_id="competitor-analysis",
        step_results=[
            StepResult(step_id="discovery", status=StepStatus.COMPLETED, tool_results=_results())
        ],
    )

    metrics = extract_key_metrics(aggregate_execution(execution))

    assert metrics["total_tools"] == 4
    assert metrics["success_rate"] == 75
    assert metrics["cache_hit_rate"] == 25
    assert metrics["total_duration"] == pytest.approx(2.0)


def test_format_limits_lists_and_reports_performance():
    results = {
        f"tool_{i}": ToolExecutionResult(
            tool_name=f"tool_{i}", success=True, data={"insights": [f"insight {i}"]}
        )
        for i in range(7)
    }

    text = format_aggregated_results(aggregate_tool_results(results))

    assert "**Key Insights:**" in text
    assert "5. insight 4" in text
    assert "insight 5" not in text
    assert "**Recommendations:**" not in text
    assert "- Success Rate: 100%" in text
    assert "- Cache Hit Rate: 0%" in text
