"""Heuristics that turn unstructured search text into typed records."""

from killmystartup.services.extraction.company_name import (
    COMPANY_NAME_RULES,
    clean_company_name,
    extract_company_name,
)
from killmystartup.services.extraction.competitors import (
    generate_competitor_queries,
    parse_competitor_json,
    parse_competitor_results,
)
from killmystartup.services.extraction.news import (
    analyze_news_for_startup,
    build_news_queries,
    categorize_news,
    determine_relevance,
)
from killmystartup.services.extraction.signals import (
    RISK_RULES,
    determine_risk_level,
    extract_employee_count,
    extract_founded_year,
    extract_funding_info,
    extract_valuation,
    extract_website,
)

__all__ = [
    "COMPANY_NAME_RULES",
    "RISK_RULES",
    "analyze_news_for_startup",
    "build_news_queries",
    "categorize_news",
    "clean_company_name",
    "determine_relevance",
    "determine_risk_level",
    "extract_company_name",
    "extract_employee_count",
    "extract_founded_year",
    "extract_funding_info",
    "extract_valuation",
    "extract_website",
    "generate_competitor_queries",
    "parse_competitor_json",
    "parse_competitor_results",
]
