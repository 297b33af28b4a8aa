"""Competitor intelligence schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from killmystartup.models.competitor import RiskLevel


class CompetitorDraft(BaseModel):
    """A competitor extracted from provider output, not yet persisted."""

    name: str
    description: str | None = None
    website: str | None = None
    industry: str | None = None
    founded_year: int | None = None
    employee_count: str | None = None
    last_funding: str | None = None
    funding_amount: str | None = None
    valuation: str | None = None
    recent_news: str | None = None
    risk_level: RiskLevel = RiskLevel.MEDIUM


class CompetitorData(CompetitorDraft):
    """A competitor profile as returned to dashboards."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    industry: str


class CompetitorSearchRequest(BaseModel):
    industry: str | None = None
    context: str | None = None
    user_info: str | None = Field(None, validation_alias=AliasChoices("user_info", "userInfo"))
    max_results: int = Field(8, ge=1, le=20)
    force_refresh: bool = Field(
        False, validation_alias=AliasChoices("force_refresh", "forceRefresh")
    )


class CompetitorSearchResponse(BaseModel):
    success: bool = True
    competitors: list[CompetitorData]
    total_competitors: int
    from_cache: bool
    last_fetch: datetime | None = None
    update_type: str | None = None


class CompetitorCacheStats(BaseModel):
    total_competitors: int = 0
    total_cache_entries: int = 0
    by_industry: dict[str, int] = Field(default_factory=dict)
    by_risk_level: dict[str, int] = Field(default_factory=dict)


class CompetitorStatsResponse(BaseModel):
    success: bool = True
    status: str = "ok"
    stats: CompetitorCacheStats


class TopRiskyResponse(BaseModel):
    success: bool = True
    industry: str
    competitors: list[CompetitorData]
