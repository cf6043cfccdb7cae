from __future__ import annotations

from ..contracts import ToolInvocation, Workflow, WorkflowStep

technical_seo_audit = Workflow(
    id="technical-seo-audit",
    name="Technical SEO Audit",
    description=(
        "Technical SEO audit: site crawling, Core Web Vitals, content parsing "
        "and issue prioritisation"
    ),
    category="seo",
    tags=["Technical SEO", "Audit", "Core Web Vitals", "Site Health"],
    steps=[
        WorkflowStep(
            id="crawl-site-structure",
            name="Site Structure Crawling",
            description="Crawl website structure to map all pages and links",
            tools=[
                ToolInvocation(
                    name="firecrawl_crawl",
                    params={
                        "url": "{{targetUrl}}",
                        "limit": 100,
                        "maxDepth": "{{crawlDepth}}",
                        "scrapeOptions": {"formats": ["markdown", "html", "links"]},
                    },
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="crawl-core-web-vitals",
            name="Core Web Vitals Analysis",
            description="Measure page performance of the key pages",
            parallel=True,
            dependencies=["crawl-site-structure"],
            tools=[
                ToolInvocation(
                    name="on_page_lighthouse",
                    params={"url": "{{targetUrl}}", "enable_javascript": True},
                    required=True,
                ),
                ToolInvocation(
                    name="on_page_lighthouse",
                    params={"url": "{{top_page_1}}", "enable_javascript": True},
                ),
            ],
        ),
        WorkflowStep(
            id="crawl-content-parsing",
            name="Content Parsing Analysis",
            description="Parse content structure and SEO elements",
            parallel=True,
            dependencies=["crawl-site-structure"],
            tools=[
                ToolInvocation(
                    name="on_page_content_parsing", params={"url": "{{targetUrl}}"}
                ),
                ToolInvocation(
                    name="on_page_content_parsing", params={"url": "{{key_page_1}}"}
                ),
            ],
        ),
        WorkflowStep(
            id="detection-issue-categorization",
            name="Issue Categorization",
            description="Group detected issues by severity and area",
            agent="analysis",
            dependencies=["crawl-core-web-vitals", "crawl-content-parsing"],
            tools=[
                ToolInvocation(
                    name="perplexity_search",
                    params={"query": "current technical SEO best practices for {{targetUrl}}"},
                ),
            ],
        ),
        WorkflowStep(
            id="action-plan-generation",
            name="Action Plan Generation",
            description="Prioritised list of fixes",
            agent="strategy",
            dependencies=["detection-issue-categorization"],
            output_format="markdown",
        ),
    ],
)
