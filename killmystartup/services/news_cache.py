"""News cache: fronts the provider's web search with a TTL'd article store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from killmystartup.core.logging import get_logger
from killmystartup.database import SessionFactory, as_utc
from killmystartup.models.news import NewsArticle, NewsCacheEntry
from killmystartup.schemas.cache import CleanupReport
from killmystartup.schemas.news import CachedNewsArticle, NewsCacheStats, NewsItem
from killmystartup.services.cache_keys import generate_cache_key
from killmystartup.services.record_store import Clock, RecordKind, TimeBoundedStore

logger = get_logger(__name__)

NEWS_KIND = RecordKind(
    domain="news",
    entry_model=NewsCacheEntry,
    record_model=NewsArticle,
    identity_field="url",
)


@dataclass(frozen=True)
class NewsQuery:
    """Fields identifying one news search."""

    industry: str
    user_info: str | None = None
    context: str | None = None

    def key_fields(self) -> dict[str, str | None]:
        return {
            "industry": self.industry,
            "userInfo": self.user_info,
            "context": self.context,
        }

    @property
    def cache_key(self) -> str:
        return generate_cache_key(self.key_fields())


@dataclass
class CachedNewsResult:
    articles: list[CachedNewsArticle]
    total_results: int
    last_fetch: datetime
    from_cache: bool = True


class NewsCache:
    """Cache orchestrator for news articles."""

    DEFAULT_TTL_HOURS = 6

    def __init__(self, session_factory: SessionFactory, clock: Clock | None = None) -> None:
        self.store = TimeBoundedStore(NEWS_KIND, session_factory, clock)

    async def get_cached_news(
        self,
        query: NewsQuery,
        ttl_hours: float | None = None,
    ) -> CachedNewsResult | None:
        """Return fresh cached articles for the query's industry, or None on a miss.

        A store failure counts as a miss.
        """
        try:
            hit = await self.store.fetch(
                query.cache_key,
                query.industry,
                ttl_hours=ttl_hours,
                order_by=(NewsArticle.created_at.desc(), NewsArticle.url),
            )
        except SQLAlchemyError as e:
            logger.warning("news_cache_read_failed", industry=query.industry, error=str(e))
            return None

        if hit is None:
            return None

        return CachedNewsResult(
            articles=[CachedNewsArticle.model_validate(a) for a in hit.records],
            total_results=hit.entry.result_count,
            last_fetch=hit.entry.last_fetch_at,
        )

    async def store_news(
        self,
        query: NewsQuery,
        ttl_hours: float | None,
        articles: Sequence[NewsItem],
    ) -> datetime:
        """Write articles and query metadata atomically. Raises CacheWriteError."""
        expires_at = await self.store.write(
            query.cache_key,
            query.industry,
            ttl_hours or self.DEFAULT_TTL_HOURS,
            [article.model_dump() for article in articles],
        )
        logger.info("news_cached", industry=query.industry, article_count=len(articles))
        return expires_at

    async def cleanup_expired_cache(self) -> CleanupReport:
        report = await self.store.cleanup_expired()
        logger.info(
            "news_cache_cleanup",
            articles_deleted=report.records_deleted,
            entries_deleted=report.entries_deleted,
        )
        return report

    async def invalidate_cache(self, industry: str) -> CleanupReport:
        report = await self.store.invalidate(industry)
        logger.info("news_cache_invalidated", industry=industry)
        return report

    async def get_cache_stats(self) -> NewsCacheStats:
        """Totals, article age range and per-industry counts. Zeroed on store failure."""
        try:
            async with self.store.session_factory() as session:
                totals = (
                    await session.execute(
                        select(
                            func.count(NewsArticle.id),
                            func.min(NewsArticle.created_at),
                            func.max(NewsArticle.created_at),
                        )
                    )
                ).one()
                entry_count = (
                    await session.execute(select(func.count(NewsCacheEntry.id)))
                ).scalar_one()
                by_industry = await session.execute(
                    select(NewsArticle.industry, func.count(NewsArticle.id)).group_by(
                        NewsArticle.industry
                    )
                )
                by_industry_map = {industry: count for industry, count in by_industry.all()}
        except SQLAlchemyError as e:
            logger.warning("news_cache_stats_failed", error=str(e))
            return NewsCacheStats()

        total, oldest, newest = totals
        return NewsCacheStats(
            total_articles=total,
            total_cache_entries=entry_count,
            oldest_article=as_utc(oldest) if oldest else None,
            newest_article=as_utc(newest) if newest else None,
            by_industry=by_industry_map,
        )
