"""Answer engine optimisation (AEO) workflows.

They expect ``url`` and ``topic`` variables. ``{{content}}`` resolves from the
``content`` field returned by the ``jina_reader`` call of an earlier step.
"""

from __future__ import annotations

from ..contracts import ToolInvocation, Workflow, WorkflowStep

_PLATFORMS = ["chatgpt", "perplexity", "claude", "gemini"]


def _extract_content() -> WorkflowStep:
    return WorkflowStep(
        id="extract-content",
        name="Extract Content",
        description="Scrape and extract clean content from the target URL",
        agent="research",
        tools=[ToolInvocation(name="jina_reader", params={"url": "{{url}}"}, required=True)],
    )


aeo_comprehensive_audit = Workflow(
    id="aeo-comprehensive-audit",
    name="Comprehensive AEO Audit",
    description=(
        "Audit content for AI platform visibility: citation-worthiness, EEAT "
        "signals and platform-specific optimization"
    ),
    category="aeo",
    tags=["AEO", "Audit", "EEAT", "Citations", "Multi-Platform"],
    steps=[
        _extract_content(),
        WorkflowStep(
            id="parallel-analysis",
            name="Multi-Dimensional Analysis",
            description="Analyze citation opportunities, EEAT signals and platform fit",
            agent="seo_manager",
            parallel=True,
            dependencies=["extract-content"],
            tools=[
                ToolInvocation(
                    name="aeo_find_citation_opportunities",
                    params={"yourUrl": "{{url}}", "topic": "{{topic}}"},
                    required=True,
                ),
                ToolInvocation(
                    name="aeo_detect_eeat_signals",
                    params={"content": "{{content}}", "url": "{{url}}"},
                    required=True,
                ),
                ToolInvocation(
                    name="aeo_compare_platforms",
                    params={"content": "{{content}}", "platforms": _PLATFORMS},
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="citation-analysis",
            name="Citation Pattern Analysis",
            description="Analyze what content gets cited for this topic",
            agent="seo_manager",
            dependencies=["parallel-analysis"],
            tools=[
                ToolInvocation(
                    name="aeo_analyze_citations",
                    params={"topic": "{{topic}}", "platforms": ["perplexity"]},
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="generate-recommendations",
            name="Generate Action Plan",
            description="Synthesize all analysis into prioritized recommendations",
            agent="seo_manager",
            dependencies=["citation-analysis"],
            tools=[
                ToolInvocation(
                    name="aeo_optimize_for_citations",
                    params={
                        "content": "{{content}}",
                        "topic": "{{topic}}",
                        "targetPlatforms": ["all"],
                    },
                    required=True,
                ),
                ToolInvocation(
                    name="aeo_enhance_eeat_signals",
                    params={"content": "{{content}}", "focusAreas": ["all"]},
                    required=True,
                ),
                ToolInvocation(
                    name="aeo_analyze_sentiment",
                    params={"content": "{{content}}", "url": "{{url}}"},
                    required=True,
                ),
                ToolInvocation(
                    name="aeo_analyze_entities",
                    params={"content": "{{content}}", "platforms": ["all"]},
                    required=True,
                ),
            ],
        ),
    ],
)


aeo_multi_platform_optimization = Workflow(
    id="aeo-multi-platform-optimization",
    name="Multi-Platform AEO Optimization",
    description="Optimize content for ChatGPT, Perplexity, Claude and Gemini at once",
    category="aeo",
    tags=["AEO", "Multi-Platform", "ChatGPT", "Perplexity", "Claude", "Gemini"],
    steps=[
        _extract_content(),
        WorkflowStep(
            id="platform-comparison",
            name="Platform Comparison",
            description="Compare optimization across all AI platforms",
            agent="seo_manager",
            dependencies=["extract-content"],
            tools=[
                ToolInvocation(
                    name="aeo_compare_platforms",
                    params={"content": "{{content}}", "platforms": _PLATFORMS},
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="platform-specific-optimization",
            name="Platform-Specific Recommendations",
            description="Get detailed recommendations for each platform",
            agent="seo_manager",
            parallel=True,
            dependencies=["platform-comparison"],
            tools=[
                ToolInvocation(
                    name="aeo_optimize_for_platform",
                    params={"content": "{{content}}", "platform": platform},
                    required=True,
                )
                for platform in _PLATFORMS
            ],
        ),
        WorkflowStep(
            id="synthesize-recommendations",
            name="Universal Optimization Strategy",
            description=(
                "Identify universal optimizations and prioritize platform-specific changes"
            ),
            agent="seo_manager",
            dependencies=["platform-specific-optimization"],
            system_prompt=(
                "Synthesize the platform-specific recommendations into universal "
                "optimizations, platform-specific optimizations and an "
                "implementation priority."
            ),
        ),
    ],
)


aeo_citation_optimization = Workflow(
    id="aeo-citation-optimization",
    name="Citation Optimization",
    description=(
        "Analyze what gets cited for a topic, find gaps in your content and "
        "recommend changes that get it cited by AI platforms"
    ),
    category="aeo",
    tags=["AEO", "Citations", "Competitive Analysis", "Content Optimization"],
    steps=[
        WorkflowStep(
            id="citation-landscape",
            name="Citation Landscape Analysis",
            description="Analyze what content gets cited for your topic",
            agent="seo_manager",
            tools=[
                ToolInvocation(
                    name="aeo_analyze_citations",
                    params={"topic": "{{topic}}", "platforms": _PLATFORMS},
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="analyze-your-content",
            name="Your Content Analysis",
            description="Scrape and analyze your content for citation-worthiness",
            agent="seo_manager",
            parallel=True,
            dependencies=["citation-landscape"],
            tools=[
                ToolInvocation(name="jina_reader", params={"url": "{{url}}"}, required=True),
                ToolInvocation(
                    name="aeo_find_citation_opportunities",
                    params={"yourUrl": "{{url}}", "topic": "{{topic}}"},
                    required=True,
                ),
            ],
        ),
        WorkflowStep(
            id="optimization-plan",
            name="Citation Optimization Plan",
            description="Recommend specific changes that improve citation-worthiness",
            agent="seo_manager",
            dependencies=["analyze-your-content"],
            output_format="structured",
            tools=[
                ToolInvocation(
                    name="aeo_optimize_for_citations",
                    params={
                        "content": "{{content}}",
                        "topic": "{{topic}}",
                        "targetPlatforms": ["all"],
                    },
                    required=True,
                ),
            ],
        ),
    ],
)
