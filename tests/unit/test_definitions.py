import json

import pytest

from seoflow.definitions import (
    BUILTIN_WORKFLOWS,
    get_workflow,
    load_workflow,
    resolve_workflow,
)
from seoflow.errors import WorkflowDefinitionError
from seoflow.validation import validate_workflow


@pytest.mark.parametrize("workflow_id", sorted(BUILTIN_WORKFLOWS))
def test_builtin_workflows_are_valid(workflow_id):
    assert validate_workflow(get_workflow(workflow_id)) == []


def test_competitor_analysis_shape():
    wf = get_workflow("competitor-analysis")
    assert wf.step_ids[0] == "competitor-discovery"
    assert wf.get_step("competitor-discovery").parallel is True
    assert set(wf.get_step("strategy-formulation").dependencies) == {
        "competitor-discovery",
        "competitor-deep-dive",
        "keyword-profile-analysis",
    }


def test_technical_audit_has_parallel_crawls():
    wf = get_workflow("technical-seo-audit")
    assert wf.get_step("crawl-core-web-vitals").parallel is True
    assert wf.get_step("crawl-content-parsing").parallel is True
    assert wf.get_step("action-plan-generation").tools == []


def test_rank_on_chatgpt_shape():
    wf = get_workflow("rank-on-chatgpt")
    research = wf.get_step("research-phase")
    assert research.parallel is True
    assert [t.name for t in research.tools] == [
        "ai_keyword_search_volume",
        "keyword_search_volume",
        "google_rankings",
    ]
    assert [t.params["url"] for t in wf.get_step("content-analysis").tools] == [
        "{{serp_result_1_url}}",
        "{{serp_result_2_url}}",
        "{{serp_result_3_url}}",
    ]
    assert wf.get_step("citation-recommendations").dependencies == [
        "citation-research",
        "strategy-generation",
    ]


def test_aeo_workflows_share_the_aeo_category():
    aeo = [wf for wf in BUILTIN_WORKFLOWS.values() if wf.category == "aeo"]
    assert sorted(wf.id for wf in aeo) == [
        "aeo-citation-optimization",
        "aeo-comprehensive-audit",
        "aeo-multi-platform-optimization",
    ]
    platforms = get_workflow("aeo-multi-platform-optimization").get_step(
        "platform-specific-optimization"
    )
    assert [t.params["platform"] for t in platforms.tools] == [
        "chatgpt",
        "perplexity",
        "claude",
        "gemini",
    ]


def test_get_unknown_workflow():
    with pytest.raises(KeyError):
        get_workflow("nope")


def test_load_yaml_definition(tmp_path):
    path = tmp_path / "wf.yaml"
    path.write_text(
        """
id: quick-check
name: Quick check
steps:
  - id: fetch
    name: Fetch page
    tools:
      - name: jina_reader
        params: {url: "{{targetUrl}}"}
        required: true
  - id: summarise
    name: Summarise
    dependencies: [fetch]
"""
    )
    wf = load_workflow(path)
    assert wf.id == "quick-check"
    assert wf.steps[0].tools[0].required is True
    assert wf.steps[1].dependencies == ["fetch"]
    assert resolve_workflow(str(path)).id == "quick-check"


def test_load_json_definition(tmp_path):
    path = tmp_path / "wf.json"
    path.write_text(json.dumps({"id": "j", "name": "J", "steps": []}))
    assert load_workflow(path).steps == []


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "wf.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(WorkflowDefinitionError):
        load_workflow(path)
