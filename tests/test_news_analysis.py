"""Tests for news query building, labelling and the startup digest."""

from __future__ import annotations

from datetime import UTC, datetime

from killmystartup.schemas.news import NewsItem
from killmystartup.schemas.provider import SearchHit
from killmystartup.services.extraction import (
    analyze_news_for_startup,
    build_news_queries,
    categorize_news,
    determine_relevance,
)
from killmystartup.services.extraction.news import NO_NEWS_MESSAGE, news_item_from_hit

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _item(title: str, tag: str) -> NewsItem:
    return NewsItem(title=title, url=f"https://n.example.com/{title}", relevance="r", tag=tag)


class TestBuildNewsQueries:
    def test_personalized_when_user_info_and_context(self):
        queries = build_news_queries("fintech", "solo founder", "payroll", now=NOW)
        assert queries[0] == "payroll startup funding news 2026"
        assert len(queries) == 4

    def test_default_without_context(self):
        queries = build_news_queries("fintech", "solo founder", None, now=NOW)
        assert queries[0] == "recent news in fintech space 2026"
        assert queries[-1] == "fintech business failures and lessons 2026"


class TestCategorizeNews:
    def test_funding_first(self):
        assert categorize_news("AI startup raises $10M") == "Funding"

    def test_ai_word(self):
        assert categorize_news("New AI model for tutors") == "AI Tech"

    def test_ai_inside_word_is_not_ai(self):
        assert categorize_news("Retail chain expands") == "General"

    def test_education(self):
        assert categorize_news("Student loans reshaped") == "Education"

    def test_startup_news(self):
        assert categorize_news("Company of the week") == "Startup News"

    def test_market(self):
        assert categorize_news("Industry outlook for Q3") == "Market Analysis"

    def test_risk(self):
        assert categorize_news("Fintech darling to shut down") == "Risk Alert"


class TestDetermineRelevance:
    def test_no_context(self):
        assert determine_relevance("anything") == "General market insight"

    def test_direct_match(self):
        assert determine_relevance("Payroll tools boom", "payroll") == "Direct match for payroll"

    def test_funding(self):
        assert determine_relevance("Acme closes Series A", "payroll") == "Funding activity in similar space"

    def test_trend(self):
        assert determine_relevance("Growth slows in Q2", "payroll") == "Market trend analysis"

    def test_warning(self):
        assert determine_relevance("Acme shuts down", "payroll") == "Warning signal for industry"

    def test_fallback(self):
        assert determine_relevance("Acme hires CFO", "payroll") == "Related industry news"


class TestNewsItemFromHit:
    def test_defaults(self):
        item = news_item_from_hit(SearchHit(title="Acme raises", url="https://a.com"))
        assert item.date == "Recent"
        assert item.snippet is None
        assert item.tag == "Funding"
        assert item.relevance == "General market insight"


class TestAnalyzeNews:
    def test_empty(self):
        assert analyze_news_for_startup([], "fintech") == NO_NEWS_MESSAGE

    def test_summary_and_headlines(self):
        items = [
            _item("F1", "Funding"),
            _item("F2", "Funding"),
            _item("F3", "Funding"),
            _item("R1", "Risk Alert"),
            _item("M1", "Market Analysis"),
        ]
        text = analyze_news_for_startup(items, "payroll")

        assert text.startswith("## News Analysis for: payroll")
        assert "- Total articles: 5" in text
        assert "- Funding news: 3" in text
        assert "- F1" in text and "- F2" in text and "- F3" not in text
        assert "- R1" in text
        assert text.endswith("Moderate market activity - good timing for entry with proper execution.")

    def test_high_funding(self):
        items = [_item(f"F{i}", "Funding") for i in range(4)]
        assert analyze_news_for_startup(items, "x").endswith(
            "High funding activity detected - competitive market with investor interest."
        )

    def test_risk_signals(self):
        items = [_item(f"R{i}", "Risk Alert") for i in range(3)]
        assert "Multiple risk signals" in analyze_news_for_startup(items, "x")

    def test_limited_coverage(self):
        assert "Limited news coverage" in analyze_news_for_startup([_item("G", "General")], "x")
