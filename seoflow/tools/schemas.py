"""Parameter schemas for the SEO tools used by workflow definitions.

Each tool name maps to a pydantic model. Unknown keys are rejected so that a
typo in a definition surfaces as a failed tool call instead of being passed
through to a third-party API.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid")


class JinaReaderParams(ToolParams):
    url: str
    timeout: Optional[float] = None


class PerplexitySearchParams(ToolParams):
    query: str
    search_recency_filter: Optional[Literal["day", "week", "month", "year"]] = None
    return_citations: bool = True


class FirecrawlScrapeParams(ToolParams):
    url: str
    formats: List[str] = Field(default_factory=lambda: ["markdown"])
    only_main_content: bool = True


class FirecrawlCrawlParams(ToolParams):
    url: str
    limit: int = 100
    max_depth: int = Field(default=3, alias="maxDepth")
    scrape_options: Dict[str, object] = Field(
        default_factory=dict, alias="scrapeOptions"
    )

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DomainOverviewParams(ToolParams):
    domain: str
    location_name: str = "United States"
    language_code: str = "en"


class GoogleRankingsParams(ToolParams):
    keyword: str
    location_name: str = "United States"
    language_code: str = "en"
    depth: int = 10


class KeywordSearchVolumeParams(ToolParams):
    keywords: List[str]
    location_name: str = "United States"
    language_code: str = "en"


class RankedKeywordsParams(ToolParams):
    target: str
    location_name: str = "United States"
    limit: int = 100
    order_by: List[str] = Field(default_factory=list)


class KeywordIntelligenceParams(ToolParams):
    keyword: str
    location_name: str = "United States"
    include_serp: bool = True


class OnPageLighthouseParams(ToolParams):
    url: str
    enable_javascript: bool = True


class OnPageContentParsingParams(ToolParams):
    url: str


class AIKeywordSearchVolumeParams(ToolParams):
    keyword: str
    location_name: str = "United States"
    language_code: str = "en"


# Answer engine optimisation (AEO) tools

Platform = Literal["chatgpt", "perplexity", "claude", "gemini", "all"]


class AEOParams(ToolParams):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class AnalyzeCitationsParams(AEOParams):
    topic: str
    platforms: List[Platform] = Field(default_factory=lambda: ["perplexity"])


class FindCitationOpportunitiesParams(AEOParams):
    your_url: str = Field(alias="yourUrl")
    topic: str


class OptimizeForCitationsParams(AEOParams):
    content: str
    topic: str
    target_platforms: List[Platform] = Field(
        default_factory=lambda: ["all"], alias="targetPlatforms"
    )


class DetectEEATSignalsParams(AEOParams):
    content: str
    url: Optional[str] = None


class EnhanceEEATSignalsParams(AEOParams):
    content: str
    focus_areas: List[
        Literal["experience", "expertise", "authoritativeness", "trustworthiness", "all"]
    ] = Field(default_factory=lambda: ["all"], alias="focusAreas")


class ComparePlatformsParams(AEOParams):
    content: str
    platforms: List[Platform] = Field(
        default_factory=lambda: ["chatgpt", "perplexity", "claude", "gemini"]
    )


class AnalyzeSentimentParams(AEOParams):
    content: str
    url: Optional[str] = None


class AnalyzeEntitiesParams(AEOParams):
    content: str
    platforms: List[Platform] = Field(default_factory=lambda: ["all"])


class OptimizeForPlatformParams(AEOParams):
    content: str
    platform: Literal["chatgpt", "perplexity", "claude", "gemini"]


TOOL_PARAM_SCHEMAS: Dict[str, Type[ToolParams]] = {
    "jina_reader": JinaReaderParams,
    "perplexity_search": PerplexitySearchParams,
    "firecrawl_scrape": FirecrawlScrapeParams,
    "firecrawl_crawl": FirecrawlCrawlParams,
    "domain_overview": DomainOverviewParams,
    "google_rankings": GoogleRankingsParams,
    "keyword_search_volume": KeywordSearchVolumeParams,
    "dataforseo_labs_google_ranked_keywords": RankedKeywordsParams,
    "keyword_intelligence": KeywordIntelligenceParams,
    "on_page_lighthouse": OnPageLighthouseParams,
    "on_page_content_parsing": OnPageContentParsingParams,
    "ai_keyword_search_volume": AIKeywordSearchVolumeParams,
    "aeo_analyze_citations": AnalyzeCitationsParams,
    "aeo_find_citation_opportunities": FindCitationOpportunitiesParams,
    "aeo_optimize_for_citations": OptimizeForCitationsParams,
    "aeo_detect_eeat_signals": DetectEEATSignalsParams,
    "aeo_enhance_eeat_signals": EnhanceEEATSignalsParams,
    "aeo_compare_platforms": ComparePlatformsParams,
    "aeo_analyze_sentiment": AnalyzeSentimentParams,
    "aeo_analyze_entities": AnalyzeEntitiesParams,
    "aeo_optimize_for_platform": OptimizeForPlatformParams,
}
