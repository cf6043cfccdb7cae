from __future__ import annotations

from ..contracts import ToolInvocation, Workflow, WorkflowStep

_LOCATION = "United States"

rank_on_chatgpt = Workflow(
    id="rank-on-chatgpt",
    name="How to Rank on ChatGPT",
    description=(
        "Complete strategy to rank your content on AI search engines "
        "(ChatGPT, Claude, Perplexity)"
    ),
    category="seo",
    tags=["AI Search", "ChatGPT", "AEO", "EEAT", "Citations"],
    steps=[
        WorkflowStep(
            id="research-phase",
            name="Research Phase",
            description=(
                "Gather data about AI search volume, Google rankings, and the current SERP"
            ),
            agent="research",
            parallel=True,
            tools=[
                ToolInvocation(
                    name="ai_keyword_search_volume",
                    params={"keyword": "{{keyword}}", "location_name": _LOCATION},
                    required=True,
                ),
                ToolInvocation(
                    name="keyword_search_volume",
                    params={"keywords": ["{{keyword}}"], "location_name": _LOCATION},
                    required=True,
                ),
                ToolInvocation(
                    name="google_rankings",
                    params={"keyword": "{{keyword}}", "location_name": _LOCATION},
                    required=True,
                ),
            ],
            system_prompt=(
                "You are a research agent gathering data about AI search optimization. "
                "Collect AI platform search volume, traditional Google search volume "
                "for comparison, and the current SERP results."
            ),
        ),
        WorkflowStep(
            id="content-analysis",
            name="Content Analysis",
            description="Scrape and analyze the top 3 ranking pages",
            agent="research",
            parallel=True,
            dependencies=["research-phase"],
            tools=[
                ToolInvocation(name="jina_reader", params={"url": f"{{{{serp_result_{i}_url}}}}"})
                for i in (1, 2, 3)
            ],
            system_prompt=(
                "You are analyzing top-ranking content. Identify content structure, "
                "EEAT signals, citation patterns, depth and unique angles across "
                "all three pages."
            ),
        ),
        WorkflowStep(
            id="citation-research",
            name="Citation Research",
            description="Find authoritative sources and recent data to cite in content",
            agent="research",
            dependencies=["content-analysis"],
            tools=[
                ToolInvocation(
                    name="perplexity_search",
                    params={
                        "query": (
                            "Latest statistics and research about {{keyword}} "
                            "from authoritative sources"
                        ),
                        "search_recency_filter": "month",
                    },
                ),
            ],
        ),
        WorkflowStep(
            id="strategy-generation",
            name="Strategy Generation",
            description="Analyze all data and create an actionable ranking strategy",
            agent="strategy",
            dependencies=["research-phase", "content-analysis", "citation-research"],
            output_format="component",
            system_prompt=(
                "You are a strategy agent creating an actionable plan to rank on AI "
                "search engines. Cover the AI search opportunity, content gaps, EEAT "
                "strategy, content structure, citation strategy and an optimization "
                "checklist."
            ),
        ),
        WorkflowStep(
            id="citation-recommendations",
            name="Citation Recommendations",
            description="Provide specific sources to cite with context",
            agent="strategy",
            dependencies=["citation-research", "strategy-generation"],
            output_format="component",
        ),
    ],
)
