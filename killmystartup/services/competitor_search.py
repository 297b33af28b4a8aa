"""Competitor search: discovery, parameter updates and scheduled refresh.

Full discovery runs a multi-query web search and extracts profiles from
the hits. A parameter update asks a chat model for a fresh JSON list of
known competitors. Both are cache-first and write through the
competitor cache; a failed cache write never fails the request.
"""

from __future__ import annotations

from collections.abc import Sequence

from killmystartup.config import Settings
from killmystartup.core.errors import CacheWriteError
from killmystartup.core.logging import bind_industry, get_logger
from killmystartup.schemas.competitor import (
    CompetitorData,
    CompetitorDraft,
    CompetitorSearchRequest,
    CompetitorSearchResponse,
)
from killmystartup.schemas.schedule import ScheduledRefreshRequest, ScheduledRefreshResponse
from killmystartup.services.competitor_cache import (
    PARAMETER_UPDATE_TYPE,
    CachedCompetitorResult,
    CompetitorCache,
    CompetitorQuery,
)
from killmystartup.services.extraction.competitors import (
    PARAMETER_UPDATE_SYSTEM_PROMPT,
    build_parameter_update_prompt,
    generate_competitor_queries,
    parse_competitor_json,
    parse_competitor_results,
)
from killmystartup.services.perplexity import PerplexityClient
from killmystartup.services.scheduler import CompetitorScheduler, RefreshTier

logger = get_logger(__name__)


def _from_cache(cached: CachedCompetitorResult, update_type: str | None) -> CompetitorSearchResponse:
    return CompetitorSearchResponse(
        competitors=cached.competitors,
        total_competitors=cached.total_competitors,
        from_cache=True,
        last_fetch=cached.last_fetch,
        update_type=update_type,
    )


def _fresh(drafts: Sequence[CompetitorDraft], update_type: str | None) -> CompetitorSearchResponse:
    return CompetitorSearchResponse(
        competitors=[CompetitorData(**draft.model_dump()) for draft in drafts],
        total_competitors=len(drafts),
        from_cache=False,
        update_type=update_type,
    )


class CompetitorSearchService:
    def __init__(
        self,
        cache: CompetitorCache,
        provider: PerplexityClient,
        settings: Settings,
        scheduler: CompetitorScheduler | None = None,
    ) -> None:
        self.cache = cache
        self.provider = provider
        self.settings = settings
        self.scheduler = scheduler

    def _query(
        self, industry: str | None, context: str | None, user_info: str | None
    ) -> CompetitorQuery:
        return CompetitorQuery(
            industry=industry or self.settings.default_industry,
            context=context,
            user_info=user_info,
        )

    async def _store(
        self,
        query: CompetitorQuery,
        ttl_hours: float,
        drafts: Sequence[CompetitorDraft],
    ) -> None:
        if not drafts:
            return
        try:
            await self.cache.store_competitors(query, ttl_hours, drafts)
        except CacheWriteError as e:
            logger.warning("competitor_cache_store_skipped", industry=query.industry, error=str(e))

    async def discover(self, request: CompetitorSearchRequest) -> CompetitorSearchResponse:
        """Full discovery: cached profiles if fresh, else a new web search."""
        query = self._query(request.industry, request.context, request.user_info)
        bind_industry(query.industry)
        ttl_hours = self.settings.competitor_cache_ttl_hours

        if not request.force_refresh:
            cached = await self.cache.get_cached_competitors(query)
            if cached:
                logger.info(
                    "competitor_cache_hit",
                    industry=query.industry,
                    competitor_count=len(cached.competitors),
                )
                return _from_cache(cached, None)

        queries = generate_competitor_queries(query.industry, query.context)
        logger.info("competitor_discovery_started", industry=query.industry, query_count=len(queries))

        results = await self.provider.search(queries, max_results=request.max_results)
        drafts = parse_competitor_results(results.hits, query.industry)

        await self._store(query, ttl_hours, drafts)
        return _fresh(drafts, None)

    async def update_parameters(self, request: CompetitorSearchRequest) -> CompetitorSearchResponse:
        """Cheap refresh: reuse entries younger than the parameter-update interval.

        Results are stored under their own cache key so they never refresh
        the discovery entry of the same search.
        """
        discovery_query = self._query(request.industry, request.context, request.user_info)
        bind_industry(discovery_query.industry)
        query = discovery_query.with_update_type(PARAMETER_UPDATE_TYPE)
        ttl_hours = self.settings.parameter_update_interval_hours

        if not request.force_refresh:
            cached = await self.cache.get_cached_competitors(query, ttl_hours=ttl_hours)
            if cached is None:
                # A discovery run inside the interval is as fresh as an update
                cached = await self.cache.get_cached_competitors(
                    discovery_query, ttl_hours=ttl_hours
                )
            if cached:
                logger.info(
                    "competitor_cache_hit",
                    industry=query.industry,
                    competitor_count=len(cached.competitors),
                    update_type=PARAMETER_UPDATE_TYPE,
                )
                return _from_cache(cached, PARAMETER_UPDATE_TYPE)

        completion = await self.provider.chat_completion(
            model=self.settings.perplexity_update_model,
            system_prompt=PARAMETER_UPDATE_SYSTEM_PROMPT,
            user_prompt=build_parameter_update_prompt(
                query.industry, query.context, max_results=request.max_results
            ),
            max_tokens=2000,
            temperature=0.1,
        )
        drafts = parse_competitor_json(completion.content, query.industry)
        logger.info(
            "competitor_parameters_updated",
            industry=query.industry,
            competitor_count=len(drafts),
        )

        await self._store(query, ttl_hours, drafts)
        return _fresh(drafts, PARAMETER_UPDATE_TYPE)

    async def run_scheduled(self, request: ScheduledRefreshRequest) -> ScheduledRefreshResponse:
        """Run whichever refresh tier the scheduler picks for the industry."""
        if self.scheduler is None:
            raise RuntimeError("CompetitorSearchService.run_scheduled needs a scheduler")

        tier = await self.scheduler.decide_tier(
            request.industry, context=request.context, user_info=request.user_info
        )
        logger.info("scheduled_refresh_started", industry=request.industry, tier=str(tier))

        search_request = CompetitorSearchRequest(
            industry=request.industry,
            context=request.context,
            user_info=request.user_info,
            max_results=request.max_results,
        )
        if tier == RefreshTier.FULL_DISCOVERY:
            # The tier already decided a refresh is due
            search_request.force_refresh = True
            response = await self.discover(search_request)
        else:
            response = await self.update_parameters(search_request)

        return ScheduledRefreshResponse(**response.model_dump(), tier=str(tier))
