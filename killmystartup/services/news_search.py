"""News search: cache-first startup news with a markdown digest."""

from __future__ import annotations

from killmystartup.core.errors import CacheWriteError
from killmystartup.core.logging import bind_industry, get_logger
from killmystartup.schemas.news import NewsSearchRequest, NewsSearchResponse
from killmystartup.services.extraction.news import (
    analyze_news_for_startup,
    build_news_queries,
    news_item_from_hit,
)
from killmystartup.services.news_cache import NewsCache, NewsQuery
from killmystartup.services.perplexity import PerplexityClient

logger = get_logger(__name__)


class NewsSearchService:
    """Serves news from cache, falling back to a provider search on a miss."""

    def __init__(
        self,
        cache: NewsCache,
        provider: PerplexityClient,
        *,
        ttl_hours: float = NewsCache.DEFAULT_TTL_HOURS,
        default_industry: str = "AI/education",
    ) -> None:
        self.cache = cache
        self.provider = provider
        self.ttl_hours = ttl_hours
        self.default_industry = default_industry

    async def search(self, request: NewsSearchRequest) -> NewsSearchResponse:
        industry = request.industry or self.default_industry
        query = NewsQuery(industry=industry, user_info=request.user_info, context=request.context)
        bind_industry(query.industry)
        subject = request.context or industry

        if not request.force_refresh:
            cached = await self.cache.get_cached_news(query)
            if cached:
                logger.info(
                    "news_cache_hit",
                    industry=industry,
                    article_count=len(cached.articles),
                )
                return NewsSearchResponse(
                    news=cached.articles,
                    analysis=analyze_news_for_startup(cached.articles, subject),
                    total_results=cached.total_results,
                    from_cache=True,
                    last_fetch=cached.last_fetch,
                )

        queries = build_news_queries(industry, request.user_info, request.context)
        logger.info("news_fetch_started", industry=industry, query_count=len(queries))

        results = await self.provider.search(queries, max_results=request.max_results)
        items = [news_item_from_hit(hit, request.context) for hit in results.hits]

        if items:
            try:
                await self.cache.store_news(query, self.ttl_hours, items)
            except CacheWriteError as e:
                # Serve the fresh results uncached
                logger.warning("news_cache_store_skipped", industry=industry, error=str(e))

        return NewsSearchResponse(
            news=items,
            analysis=analyze_news_for_startup(items, subject),
            total_results=len(results.hits),
            from_cache=False,
            query=", ".join(queries),
        )
