"""News search schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NewsItem(BaseModel):
    """A news article as produced by a fresh search."""

    title: str
    url: str
    date: str = "Recent"
    snippet: str | None = None
    relevance: str
    tag: str


class CachedNewsArticle(NewsItem):
    """A news article read back from the cache."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    industry: str


class NewsSearchRequest(BaseModel):
    industry: str | None = None
    user_info: str | None = Field(None, validation_alias=AliasChoices("user_info", "userInfo"))
    context: str | None = None
    max_results: int = Field(10, ge=1, le=20)
    force_refresh: bool = Field(
        False, validation_alias=AliasChoices("force_refresh", "forceRefresh")
    )


class NewsSearchResponse(BaseModel):
    success: bool = True
    news: list[NewsItem]
    analysis: str
    total_results: int
    from_cache: bool
    last_fetch: datetime | None = None
    query: str | None = None


class NewsCacheStats(BaseModel):
    total_articles: int = 0
    total_cache_entries: int = 0
    oldest_article: datetime | None = None
    newest_article: datetime | None = None
    by_industry: dict[str, int] = Field(default_factory=dict)


class NewsStatsResponse(BaseModel):
    success: bool = True
    status: str = "ok"
    stats: NewsCacheStats
