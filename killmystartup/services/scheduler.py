"""Competitor refresh scheduling.

Two refresh tiers with different cost and cadence:
- full discovery: comprehensive provider search for new competitors (daily)
- parameter update: cheap refresh of known competitors' figures (every 2h)

Decisions are computed on read from the competitor cache entries of a
topic; nothing here runs on its own. An external caller (cron, dashboard
refresh) asks decide_tier() and then triggers the matching refresh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from killmystartup.config import Settings
from killmystartup.core.logging import get_logger
from killmystartup.database import utcnow
from killmystartup.schemas.schedule import ScheduleConfigRead, ScheduleStatus
from killmystartup.services.competitor_cache import (
    PARAMETER_UPDATE_TYPE,
    CachedCompetitorResult,
    CompetitorCache,
    CompetitorQuery,
)
from killmystartup.services.record_store import Clock

logger = get_logger(__name__)


class RefreshTier(StrEnum):
    FULL_DISCOVERY = "full-discovery"
    PARAMETER_UPDATE = "parameter-update"


@dataclass
class SchedulerConfig:
    full_discovery_interval_hours: float = 24
    parameter_update_interval_hours: float = 2
    industries: list[str] = field(
        default_factory=lambda: ["AI/education", "SaaS", "Fintech", "Healthcare", "E-commerce"]
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> SchedulerConfig:
        return cls(
            full_discovery_interval_hours=settings.full_discovery_interval_hours,
            parameter_update_interval_hours=settings.parameter_update_interval_hours,
            industries=list(settings.monitored_industries),
        )

    def interval_hours(self, tier: RefreshTier) -> float:
        if tier == RefreshTier.FULL_DISCOVERY:
            return self.full_discovery_interval_hours
        return self.parameter_update_interval_hours

    def to_read(self) -> ScheduleConfigRead:
        return ScheduleConfigRead(
            full_discovery_interval_hours=self.full_discovery_interval_hours,
            parameter_update_interval_hours=self.parameter_update_interval_hours,
            industries=self.industries,
        )


class CompetitorScheduler:
    """Decides which refresh tier a topic needs and when it is next due.

    A tier is due when the cache holds no usable entry for it: none at all,
    expired, without content rows, or fetched longer ago than the tier's
    interval. Full discovery only looks at discovery entries, so frequent
    parameter updates never postpone it. A parameter update is satisfied
    by either kind of entry fetched within its interval.
    """

    def __init__(
        self,
        cache: CompetitorCache,
        config: SchedulerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.cache = cache
        self.config = config or SchedulerConfig()
        self.clock: Clock = clock or utcnow

    async def _latest_fresh(
        self, query: CompetitorQuery, tier: RefreshTier
    ) -> CachedCompetitorResult | None:
        # Read failures come back as misses, so an unreadable store is due
        ttl_hours = self.config.interval_hours(tier)
        queries = [query]
        if tier == RefreshTier.PARAMETER_UPDATE:
            queries.append(query.with_update_type(PARAMETER_UPDATE_TYPE))

        hits = []
        for candidate in queries:
            hit = await self.cache.get_cached_competitors(candidate, ttl_hours=ttl_hours)
            if hit is not None:
                hits.append(hit)
        return max(hits, key=lambda h: h.last_fetch, default=None)

    async def _is_due(self, query: CompetitorQuery, tier: RefreshTier) -> bool:
        return await self._latest_fresh(query, tier) is None

    @staticmethod
    def _query(topic: str, context: str | None, user_info: str | None) -> CompetitorQuery:
        return CompetitorQuery(industry=topic, context=context, user_info=user_info)

    async def should_run_discovery(
        self, topic: str, *, context: str | None = None, user_info: str | None = None
    ) -> bool:
        query = self._query(topic, context, user_info)
        return await self._is_due(query, RefreshTier.FULL_DISCOVERY)

    async def should_update_parameters(
        self, topic: str, *, context: str | None = None, user_info: str | None = None
    ) -> bool:
        query = self._query(topic, context, user_info)
        return await self._is_due(query, RefreshTier.PARAMETER_UPDATE)

    async def decide_tier(
        self, topic: str, *, context: str | None = None, user_info: str | None = None
    ) -> RefreshTier:
        """Pick the refresh tier for a topic.

        context and user_info select the same cache entry the matching
        refresh request reads and writes.
        """
        if await self.should_run_discovery(topic, context=context, user_info=user_info):
            return RefreshTier.FULL_DISCOVERY
        # Whether or not a parameter update is due, it is the cheap default
        return RefreshTier.PARAMETER_UPDATE

    async def next_run_time(
        self,
        topic: str,
        tier: RefreshTier,
        *,
        context: str | None = None,
        user_info: str | None = None,
    ) -> datetime:
        hit = await self._latest_fresh(self._query(topic, context, user_info), tier)
        if hit is None:
            return self.clock()
        return hit.last_fetch + timedelta(hours=self.config.interval_hours(tier))

    async def get_scheduling_status(self) -> list[ScheduleStatus]:
        statuses = []
        for industry in self.config.industries:
            statuses.append(
                ScheduleStatus(
                    industry=industry,
                    next_discovery=await self.next_run_time(industry, RefreshTier.FULL_DISCOVERY),
                    next_parameter_update=await self.next_run_time(
                        industry, RefreshTier.PARAMETER_UPDATE
                    ),
                    needs_discovery=await self.should_run_discovery(industry),
                    needs_parameter_update=await self.should_update_parameters(industry),
                )
            )
        logger.debug("scheduling_status_computed", industry_count=len(statuses))
        return statuses
