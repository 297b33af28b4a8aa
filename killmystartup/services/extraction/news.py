"""News query building, labelling and the startup news digest."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from killmystartup.schemas.news import NewsItem
from killmystartup.schemas.provider import SearchHit


def build_news_queries(
    industry: str,
    user_info: str | None = None,
    context: str | None = None,
    *,
    now: datetime | None = None,
) -> list[str]:
    year = (now or datetime.now(UTC)).year
    if user_info and context:
        return [
            f"{context} startup funding news {year}",
            f"{industry} market trends and competitors {year}",
            f"{context} business risks and challenges {year}",
            f"recent developments in {industry} space {year}",
        ]
    return [
        f"recent news in {industry} space {year}",
        f"startup funding trends {industry} {year}",
        f"market analysis {industry} competitors {year}",
        f"{industry} business failures and lessons {year}",
    ]


@dataclass(frozen=True)
class LabelRule:
    """A label applied when any of its patterns matches the lowercased title."""

    label: str
    patterns: tuple[str, ...]

    def matches(self, title: str) -> bool:
        return any(re.search(pattern, title) for pattern in self.patterns)


# First match wins
NEWS_CATEGORY_RULES: tuple[LabelRule, ...] = (
    LabelRule("Funding", ("funding", "raises", "investment")),
    LabelRule("AI Tech", (r"\bai\b", "artificial intelligence")),
    LabelRule("Education", ("education", "learning", "student")),
    LabelRule("Startup News", ("startup", "company")),
    LabelRule("Market Analysis", ("market", "industry")),
    LabelRule("Risk Alert", ("fail", "close", "shut")),
)
DEFAULT_CATEGORY = "General"

RELEVANCE_RULES: tuple[LabelRule, ...] = (
    LabelRule("Funding activity in similar space", ("funding", "raises", "series")),
    LabelRule("Market trend analysis", ("market", "growth", "trend")),
    LabelRule("Warning signal for industry", ("fails", "shuts down", "closes")),
)


def categorize_news(title: str) -> str:
    lowered = title.lower()
    for rule in NEWS_CATEGORY_RULES:
        if rule.matches(lowered):
            return rule.label
    return DEFAULT_CATEGORY


def determine_relevance(title: str, context: str | None = None) -> str:
    if not context:
        return "General market insight"

    lowered = title.lower()
    if context.lower() in lowered:
        return f"Direct match for {context}"
    for rule in RELEVANCE_RULES:
        if rule.matches(lowered):
            return rule.label
    return "Related industry news"


def news_item_from_hit(hit: SearchHit, context: str | None = None) -> NewsItem:
    return NewsItem(
        title=hit.title,
        url=hit.url,
        date=hit.date or "Recent",
        snippet=hit.snippet or None,
        relevance=determine_relevance(hit.title, context),
        tag=categorize_news(hit.title),
    )


NO_NEWS_MESSAGE = (
    "No recent news found. This could indicate a very niche market or early-stage opportunity."
)


def _assessment(funding: int, risk: int, total: int) -> str:
    if funding > 3:
        return "High funding activity detected - competitive market with investor interest."
    if risk > 2:
        return "Multiple risk signals - market may be challenging or oversaturated."
    if total < 5:
        return "Limited news coverage - either very niche market or early opportunity."
    return "Moderate market activity - good timing for entry with proper execution."


def analyze_news_for_startup(items: Sequence[NewsItem], subject: str) -> str:
    """Markdown digest of a news batch: counts by tag, top headlines, one-line assessment."""
    if not items:
        return NO_NEWS_MESSAGE

    funding = [item for item in items if item.tag == "Funding"]
    market = [item for item in items if item.tag == "Market Analysis"]
    risks = [item for item in items if item.tag == "Risk Alert"]

    lines = [
        f"## News Analysis for: {subject}",
        "",
        "### Summary",
        f"- Total articles: {len(items)}",
        f"- Funding news: {len(funding)}",
        f"- Market analysis: {len(market)}",
        f"- Risk signals: {len(risks)}",
    ]
    if funding:
        lines += ["", "### Recent Funding Activity"]
        lines += [f"- {item.title}" for item in funding[:2]]
    if risks:
        lines += ["", "### Risk Signals"]
        lines += [f"- {item.title}" for item in risks[:2]]

    lines += ["", "### Assessment", _assessment(len(funding), len(risks), len(items))]
    return "\n".join(lines)
