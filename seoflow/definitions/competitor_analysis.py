from __future__ import annotations

from ..contracts import ToolInvocation, Workflow, WorkflowStep

_LOCATION = "United States"

competitor_analysis = Workflow(
    id="competitor-analysis",
    name="Competitor Analysis",
    description="Analyze competitors to identify strengths, weaknesses, and opportunities",
    category="seo",
    tags=["Competitor", "Analysis", "Strategy", "Keywords"],
    steps=[
        WorkflowStep(
            id="competitor-discovery",
            name="Competitor Discovery",
            description="Identify key competitors and their market positioning",
            agent="research",
            parallel=True,
            tools=[
                ToolInvocation(
                    name="domain_overview",
                    params={"domain": "{{domain}}", "location_name": _LOCATION},
                    required=True,
                ),
                ToolInvocation(
                    name="google_rankings",
                    params={"keyword": "{{keyword}}", "location_name": _LOCATION},
                    required=True,
                ),
            ],
            system_prompt=(
                "You are a competitor analysis agent. Analyze the target domain's "
                "current standing, identify top competitors ranking for the main "
                "keyword and gather baseline metrics."
            ),
        ),
        WorkflowStep(
            id="competitor-deep-dive",
            name="Deep Dive Analysis",
            description="Analyze specific competitors found in the previous step",
            dependencies=["competitor-discovery"],
            tools=[
                ToolInvocation(
                    name="domain_overview",
                    params={"domain": "{{competitor_1}}", "location_name": _LOCATION},
                ),
                ToolInvocation(
                    name="domain_overview",
                    params={"domain": "{{competitor_2}}", "location_name": _LOCATION},
                ),
            ],
        ),
        WorkflowStep(
            id="keyword-profile-analysis",
            name="Keyword Profile Analysis",
            description="Compare the ranked keyword profiles of all domains",
            dependencies=["competitor-deep-dive"],
            tools=[
                ToolInvocation(
                    name="dataforseo_labs_google_ranked_keywords",
                    params={
                        "target": "{{domain}}",
                        "location_name": _LOCATION,
                        "limit": 500,
                        "order_by": ["metrics.organic.count,desc"],
                    },
                    required=True,
                ),
                ToolInvocation(
                    name="dataforseo_labs_google_ranked_keywords",
                    params={
                        "target": "{{competitor_1}}",
                        "location_name": _LOCATION,
                        "limit": 500,
                        "order_by": ["metrics.organic.count,desc"],
                    },
                ),
            ],
        ),
        WorkflowStep(
            id="strategy-formulation",
            name="Strategy Formulation",
            description="Turn the gathered data into a competitive strategy",
            agent="strategy",
            dependencies=[
                "competitor-discovery",
                "competitor-deep-dive",
                "keyword-profile-analysis",
            ],
            tools=[
                ToolInvocation(
                    name="perplexity_search",
                    params={
                        "query": "{{keyword}} content strategy trends",
                        "search_recency_filter": "month",
                    },
                ),
            ],
            output_format="markdown",
        ),
    ],
)
