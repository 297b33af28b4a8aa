"""FastAPI dependencies.

The engine, session factory and provider client live on app.state and
are built by the application lifespan; everything request-scoped is
assembled from them here.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from killmystartup.config import Settings
from killmystartup.core.errors import Unauthorized
from killmystartup.database import SessionFactory
from killmystartup.services.competitor_cache import CompetitorCache
from killmystartup.services.competitor_search import CompetitorSearchService
from killmystartup.services.news_cache import NewsCache
from killmystartup.services.news_search import NewsSearchService
from killmystartup.services.perplexity import PerplexityClient
from killmystartup.services.record_store import Clock
from killmystartup.services.scheduler import CompetitorScheduler, SchedulerConfig


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_factory(request: Request) -> SessionFactory:
    return request.app.state.session_factory


def get_provider(request: Request) -> PerplexityClient:
    return request.app.state.provider


def get_clock(request: Request) -> Clock | None:
    # Tests pin time by setting app.state.clock
    return getattr(request.app.state, "clock", None)


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Sessions = Annotated[SessionFactory, Depends(get_session_factory)]
Provider = Annotated[PerplexityClient, Depends(get_provider)]
ClockDep = Annotated[Clock | None, Depends(get_clock)]


def get_news_cache(session_factory: Sessions, clock: ClockDep) -> NewsCache:
    return NewsCache(session_factory, clock)


def get_competitor_cache(session_factory: Sessions, clock: ClockDep) -> CompetitorCache:
    return CompetitorCache(session_factory, clock)


NewsCacheDep = Annotated[NewsCache, Depends(get_news_cache)]
CompetitorCacheDep = Annotated[CompetitorCache, Depends(get_competitor_cache)]


def get_scheduler(
    cache: CompetitorCacheDep,
    settings: AppSettings,
    clock: ClockDep,
) -> CompetitorScheduler:
    return CompetitorScheduler(cache, SchedulerConfig.from_settings(settings), clock)


SchedulerDep = Annotated[CompetitorScheduler, Depends(get_scheduler)]


def get_news_search_service(
    cache: NewsCacheDep,
    provider: Provider,
    settings: AppSettings,
) -> NewsSearchService:
    return NewsSearchService(
        cache,
        provider,
        ttl_hours=settings.news_cache_ttl_hours,
        default_industry=settings.default_industry,
    )


def get_competitor_search_service(
    cache: CompetitorCacheDep,
    provider: Provider,
    settings: AppSettings,
    scheduler: SchedulerDep,
) -> CompetitorSearchService:
    return CompetitorSearchService(cache, provider, settings, scheduler)


NewsSearch = Annotated[NewsSearchService, Depends(get_news_search_service)]
CompetitorSearch = Annotated[CompetitorSearchService, Depends(get_competitor_search_service)]


async def require_internal_token(
    settings: AppSettings,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Guard for maintenance endpoints called by the cleanup cron."""
    if authorization != f"Bearer {settings.internal_api_token}":
        raise Unauthorized()


InternalToken = Depends(require_internal_token)
