import pytest

from seoflow.errors import WorkflowDefinitionError
from seoflow.validation import duplicate_step_ids, topological_order, validate_workflow

from tests.fixtures.workflows import make_step, make_workflow


def test_valid_workflow_has_no_issues(linear_workflow):
    assert validate_workflow(linear_workflow) == []


def test_reports_duplicates_unknown_dependencies_and_cycles():
    workflow = make_workflow(
        make_step("a"),
        make_step("a"),
        make_step("b", "ghost"),
        make_step("c", "d"),
        make_step("d", "c"),
        make_step("e", "c"),
    )

    issues = validate_workflow(workflow)
    kinds = {(issue.kind, issue.step_id) for issue in issues}

    assert ("duplicate_id", "a") in kinds
    assert ("unknown_dependency", "b") in kinds
    assert {("cycle", "c"), ("cycle", "d"), ("cycle", "e")} <= kinds
    assert duplicate_step_ids(workflow) == ["a"]


def test_topological_order_keeps_declaration_order_among_ready_steps():
    workflow = make_workflow(
        make_step("report", "fetch", "analyse"),
        make_step("analyse", "fetch"),
        make_step("fetch"),
        make_step("notes"),
    )
    assert [s.id for s in topological_order(workflow)] == [
        "fetch",
        "analyse",
        "report",
        "notes",
    ]


def test_topological_order_rejects_cycles():
    workflow = make_workflow(make_step("a", "b"), make_step("b", "a"))
    with pytest.raises(WorkflowDefinitionError):
        topological_order(workflow)
