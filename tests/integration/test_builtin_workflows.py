from collections import Counter

import pytest

from seoflow.aggregation import aggregate_execution
from seoflow.config import EngineConfig
from seoflow.contracts import ExecutionStatus, StepStatus, WorkflowContext
from seoflow.definitions import get_workflow
from seoflow.engine import WorkflowEngine
from seoflow.persistence import SQLiteExecutionRepository
from seoflow.recovery import WorkflowRecovery
from seoflow.tools import RegistryToolExecutor, ToolRegistry


def _build_registry(calls: Counter, ranked_keywords_down: bool = False) -> ToolRegistry:
    registry = ToolRegistry()

    @registry.register("domain_overview")
    def domain_overview(params):
        calls[("domain_overview", params["domain"])] += 1
        if params["domain"] == "example.com":
            return {"competitor_1": "rival-a.com", "competitor_2": "rival-b.com"}
        return {"traffic": 1000}

    @registry.register("google_rankings")
    async def google_rankings(params):
        calls[("google_rankings", params["keyword"])] += 1
        return {"serp": ["rival-a.com", "example.com"]}

    @registry.register("dataforseo_labs_google_ranked_keywords")
    async def ranked_keywords(params):
        calls[("ranked_keywords", params["target"])] += 1
        if ranked_keywords_down:
            raise ConnectionError("DataForSEO unavailable")
        return {"items": [{"keyword": "seo tools", "position": 4}]}

    @registry.register("perplexity_search")
    async def perplexity_search(params):
        calls[("perplexity_search", params["query"])] += 1
        return {"answer": "Publish comparison pages"}

    @registry.register("firecrawl_crawl")
    async def firecrawl_crawl(params):
        calls[("firecrawl_crawl", params["max_depth"])] += 1
        return {
            "top_page_1": "https://example.com/pricing",
            "key_page_1": "https://example.com/blog",
        }

    @registry.register("on_page_lighthouse")
    async def on_page_lighthouse(params):
        calls[("on_page_lighthouse", params["url"])] += 1
        return {"lcp": 2.1}

    @registry.register("on_page_content_parsing")
    async def on_page_content_parsing(params):
        calls[("on_page_content_parsing", params["url"])] += 1
        return {"headings": 12}

    return registry


def _context() -> WorkflowContext:
    return WorkflowContext(
        user_query="Who are my competitors?",
        variables={
            "domain": "example.com",
            "keyword": "seo tools",
            "targetUrl": "https://example.com",
            "crawlDepth": 2,
        },
    )


@pytest.mark.asyncio
async def test_competitor_analysis_runs_end_to_end(tmp_path):
    calls = Counter()
    repo = SQLiteExecutionRepository(tmp_path / "executions.db")
    engine = WorkflowEngine(
        get_workflow("competitor-analysis"),
        _context(),
        RegistryToolExecutor(_build_registry(calls)),
        repository=repo,
        user_id="alice",
        config=EngineConfig(save_retries=0),
    )

    execution = await engine.execute()

    assert execution.status == ExecutionStatus.COMPLETED
    assert [r.status for r in execution.step_results] == [StepStatus.COMPLETED] * 4
    assert calls[("domain_overview", "rival-a.com")] == 1
    assert calls[("domain_overview", "rival-b.com")] == 1
    assert calls[("ranked_keywords", "rival-a.com")] == 1
    assert calls[("perplexity_search", "seo tools content strategy trends")] == 1

    stored = await repo.load_execution(execution.id)
    assert stored.status == ExecutionStatus.COMPLETED
    assert len(await repo.list_checkpoints(execution.id)) == 8
    repo.close()


@pytest.mark.asyncio
async def test_technical_audit_resolves_crawl_output(tmp_path):
    calls = Counter()
    repo = SQLiteExecutionRepository(tmp_path / "executions.db")
    engine = WorkflowEngine(
        get_workflow("technical-seo-audit"),
        _context(),
        RegistryToolExecutor(_build_registry(calls)),
        repository=repo,
        config=EngineConfig(save_retries=0),
    )

    execution = await engine.execute()

    assert execution.status == ExecutionStatus.COMPLETED
    assert calls[("firecrawl_crawl", 2)] == 1
    assert calls[("on_page_lighthouse", "https://example.com/pricing")] == 1
    assert calls[("on_page_content_parsing", "https://example.com/blog")] == 1
    repo.close()


@pytest.mark.asyncio
async def test_failed_competitor_analysis_resumes_after_restart(tmp_path):
    db_path = tmp_path / "executions.db"
    calls = Counter()
    repo = SQLiteExecutionRepository(db_path)
    failed = await WorkflowEngine(
        get_workflow("competitor-analysis"),
        _context(),
        RegistryToolExecutor(_build_registry(calls, ranked_keywords_down=True)),
        repository=repo,
        config=EngineConfig(save_retries=0),
    ).execute()
    repo.close()

    assert failed.status == ExecutionStatus.FAILED
    assert failed.get_step_result("keyword-profile-analysis").status == StepStatus.FAILED
    assert failed.get_step_result("strategy-formulation").status == StepStatus.SKIPPED

    # a new process picks the execution up from the database
    repo = SQLiteExecutionRepository(db_path)
    recovery = WorkflowRecovery(repo)
    report = await recovery.recover_execution(failed.id)
    assert report.can_recover is True
    assert report.last_successful_step == "competitor-deep-dive"

    resumed_calls = Counter()
    engine = WorkflowEngine(
        get_workflow("competitor-analysis"),
        _context(),
        RegistryToolExecutor(_build_registry(resumed_calls)),
        repository=repo,
        config=EngineConfig(save_retries=0),
    )
    resumed = await recovery.resume(engine, failed.id)

    assert resumed.status == ExecutionStatus.COMPLETED
    assert not any(name == "domain_overview" for name, _ in resumed_calls)
    assert resumed_calls[("ranked_keywords", "example.com")] == 1
    assert resumed_calls[("ranked_keywords", "rival-a.com")] == 1
    assert (await repo.load_execution(failed.id)).status == ExecutionStatus.COMPLETED
    repo.close()


def _aeo_registry(calls: Counter) -> ToolRegistry:
    registry = ToolRegistry()

    @registry.register("jina_reader")
    async def jina_reader(params):
        calls[("jina_reader", params["url"])] += 1
        return {"content": "Our guide to technical SEO", "title": "SEO guide"}

    def _recorder(name):
        async def handler(params):
            calls[(name, params.get("content") or params.get("topic"))] += 1
            return {
                "score": 72,
                "insights": [f"{name} looked at the page"],
                "recommendations": ["Cite primary research"],
            }

        return handler

    for name in (
        "aeo_find_citation_opportunities",
        "aeo_detect_eeat_signals",
        "aeo_compare_platforms",
        "aeo_analyze_citations",
        "aeo_optimize_for_citations",
        "aeo_enhance_eeat_signals",
        "aeo_analyze_sentiment",
        "aeo_analyze_entities",
    ):
        registry.register(name)(_recorder(name))
    return registry


@pytest.mark.asyncio
async def test_aeo_audit_feeds_scraped_content_to_later_steps(tmp_path):
    calls = Counter()
    repo = SQLiteExecutionRepository(tmp_path / "executions.db")
    engine = WorkflowEngine(
        get_workflow("aeo-comprehensive-audit"),
        WorkflowContext(variables={"url": "https://example.com/guide", "topic": "seo"}),
        RegistryToolExecutor(_aeo_registry(calls)),
        repository=repo,
        config=EngineConfig(save_retries=0),
    )

    execution = await engine.execute()

    assert execution.status == ExecutionStatus.COMPLETED
    assert calls[("jina_reader", "https://example.com/guide")] == 1
    assert calls[("aeo_detect_eeat_signals", "Our guide to technical SEO")] == 1
    assert calls[("aeo_analyze_citations", "seo")] == 1

    aggregated = aggregate_execution(await repo.load_execution(execution.id))
    assert aggregated.metrics.total_tools == 9
    assert aggregated.metrics.failed_tools == 0
    assert aggregated.recommendations == ["Cite primary research"]
    assert "aeo_enhance_eeat_signals looked at the page" in aggregated.insights
    repo.close()
