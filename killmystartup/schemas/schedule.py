"""Competitor refresh scheduling schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from killmystartup.schemas.competitor import CompetitorSearchResponse


class ScheduleStatus(BaseModel):
    """Refresh status of one monitored industry."""

    industry: str
    next_discovery: datetime
    next_parameter_update: datetime
    needs_discovery: bool
    needs_parameter_update: bool


class ScheduleConfigRead(BaseModel):
    full_discovery_interval_hours: float
    parameter_update_interval_hours: float
    industries: list[str]


class ScheduleResponse(BaseModel):
    success: bool = True
    schedule: list[ScheduleStatus]
    config: ScheduleConfigRead
    timestamp: datetime


class ScheduledRefreshRequest(BaseModel):
    industry: str
    context: str | None = None
    user_info: str | None = Field(None, validation_alias=AliasChoices("user_info", "userInfo"))
    max_results: int = Field(8, ge=1, le=20)


class ScheduledRefreshResponse(CompetitorSearchResponse):
    tier: str
