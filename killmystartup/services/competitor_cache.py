"""Competitor cache: fronts competitor discovery with a TTL'd profile store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from killmystartup.core.logging import get_logger
from killmystartup.database import SessionFactory
from killmystartup.models.competitor import (
    CompetitorCacheEntry,
    CompetitorProfile,
    risk_rank_expr,
)
from killmystartup.schemas.cache import CleanupReport
from killmystartup.schemas.competitor import (
    CompetitorCacheStats,
    CompetitorData,
    CompetitorDraft,
)
from killmystartup.services.cache_keys import generate_cache_key
from killmystartup.services.record_store import Clock, RecordKind, TimeBoundedStore

logger = get_logger(__name__)

PARAMETER_UPDATE_TYPE = "parameters"

COMPETITOR_KIND = RecordKind(
    domain="competitor",
    entry_model=CompetitorCacheEntry,
    record_model=CompetitorProfile,
    identity_field="name",
    always_overwrite=frozenset({"industry", "risk_level"}),
    casefold_identity=True,
)


@dataclass(frozen=True)
class CompetitorQuery:
    """Fields identifying one competitor search.

    update_type separates parameter-update entries from full-discovery
    entries of the same search, so each tier keeps its own fetch time and
    expiry. Discovery keys carry no update type.
    """

    industry: str
    context: str | None = None
    user_info: str | None = None
    update_type: str | None = None

    def key_fields(self) -> dict[str, str | None]:
        fields = {
            "industry": self.industry,
            "context": self.context,
            "userInfo": self.user_info,
        }
        if self.update_type is not None:
            fields["updateType"] = self.update_type
        return fields

    def with_update_type(self, update_type: str | None) -> CompetitorQuery:
        return replace(self, update_type=update_type)

    @property
    def cache_key(self) -> str:
        return generate_cache_key(self.key_fields())


@dataclass
class CachedCompetitorResult:
    competitors: list[CompetitorData]
    total_competitors: int
    last_fetch: datetime
    from_cache: bool = True


def _risk_ordering():
    # CRITICAL first, then most recently refreshed
    return (risk_rank_expr().desc(), CompetitorProfile.updated_at.desc(), CompetitorProfile.name)


class CompetitorCache:
    """Cache orchestrator for competitor profiles."""

    DEFAULT_TTL_HOURS = 12

    def __init__(self, session_factory: SessionFactory, clock: Clock | None = None) -> None:
        self.store = TimeBoundedStore(COMPETITOR_KIND, session_factory, clock)

    async def get_cached_competitors(
        self,
        query: CompetitorQuery,
        ttl_hours: float | None = None,
    ) -> CachedCompetitorResult | None:
        """Return fresh cached profiles for the query's industry, or None on a miss.

        When ttl_hours is given, an entry older than that is also a miss even
        if it has not reached its own expires_at.
        """
        try:
            hit = await self.store.fetch(
                query.cache_key,
                query.industry,
                ttl_hours=ttl_hours,
                order_by=_risk_ordering(),
            )
        except SQLAlchemyError as e:
            logger.warning("competitor_cache_read_failed", industry=query.industry, error=str(e))
            return None

        if hit is None:
            return None

        return CachedCompetitorResult(
            competitors=[CompetitorData.model_validate(c) for c in hit.records],
            total_competitors=hit.entry.result_count,
            last_fetch=hit.entry.last_fetch_at,
        )

    async def store_competitors(
        self,
        query: CompetitorQuery,
        ttl_hours: float | None,
        competitors: Sequence[CompetitorDraft],
    ) -> datetime:
        """Write profiles and query metadata atomically. Raises CacheWriteError."""
        expires_at = await self.store.write(
            query.cache_key,
            query.industry,
            ttl_hours or self.DEFAULT_TTL_HOURS,
            [competitor.model_dump() for competitor in competitors],
        )
        logger.info(
            "competitors_cached",
            industry=query.industry,
            competitor_count=len(competitors),
        )
        return expires_at

    async def get_top_risky_competitors(self, industry: str, limit: int = 5) -> list[CompetitorData]:
        now = self.store.clock()
        try:
            async with self.store.session_factory() as session:
                result = await session.execute(
                    select(CompetitorProfile)
                    .where(CompetitorProfile.industry == industry)
                    .where(CompetitorProfile.expires_at > now)
                    .order_by(*_risk_ordering())
                    .limit(limit)
                )
                profiles = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.warning("top_risky_competitors_failed", industry=industry, error=str(e))
            return []

        return [CompetitorData.model_validate(p) for p in profiles]

    async def cleanup_expired_cache(self) -> CleanupReport:
        report = await self.store.cleanup_expired()
        logger.info(
            "competitor_cache_cleanup",
            profiles_deleted=report.records_deleted,
            entries_deleted=report.entries_deleted,
        )
        return report

    async def invalidate_cache(self, industry: str) -> CleanupReport:
        report = await self.store.invalidate(industry)
        logger.info("competitor_cache_invalidated", industry=industry)
        return report

    async def get_cache_stats(self) -> CompetitorCacheStats:
        """Totals plus breakdowns by industry and risk level. Zeroed on store failure."""
        try:
            async with self.store.session_factory() as session:
                total = (
                    await session.execute(select(func.count(CompetitorProfile.id)))
                ).scalar_one()
                entry_count = (
                    await session.execute(select(func.count(CompetitorCacheEntry.id)))
                ).scalar_one()
                by_industry = await session.execute(
                    select(CompetitorProfile.industry, func.count(CompetitorProfile.id)).group_by(
                        CompetitorProfile.industry
                    )
                )
                by_risk = await session.execute(
                    select(CompetitorProfile.risk_level, func.count(CompetitorProfile.id)).group_by(
                        CompetitorProfile.risk_level
                    )
                )
                by_industry_map = {industry: count for industry, count in by_industry.all()}
                by_risk_map = {str(level): count for level, count in by_risk.all()}
        except SQLAlchemyError as e:
            logger.warning("competitor_cache_stats_failed", error=str(e))
            return CompetitorCacheStats()

        return CompetitorCacheStats(
            total_competitors=total,
            total_cache_entries=entry_count,
            by_industry=by_industry_map,
            by_risk_level=by_risk_map,
        )
