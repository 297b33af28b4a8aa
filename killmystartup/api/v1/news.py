"""News endpoints: startup news search and news cache maintenance."""

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from killmystartup.core.errors import CacheError
from killmystartup.core.logging import get_logger
from killmystartup.deps import InternalToken, NewsCacheDep, NewsSearch
from killmystartup.schemas.cache import CleanupResponse, InvalidateResponse
from killmystartup.schemas.news import NewsSearchRequest, NewsSearchResponse, NewsStatsResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("/search", response_model=NewsSearchResponse)
async def search_news(data: NewsSearchRequest, service: NewsSearch) -> NewsSearchResponse:
    """Cached startup news for an industry, with a short market digest."""
    return await service.search(data)


@router.get("/search", response_model=NewsStatsResponse)
async def search_health(cache: NewsCacheDep) -> NewsStatsResponse:
    return NewsStatsResponse(stats=await cache.get_cache_stats())


@router.post(
    "/news/cleanup",
    response_model=CleanupResponse,
    dependencies=[InternalToken],
)
async def cleanup_news_cache(cache: NewsCacheDep):
    """Delete expired articles and cache entries. Called by the cleanup cron."""
    try:
        report = await cache.cleanup_expired_cache()
    except CacheError as e:
        logger.error("news_cleanup_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Cleanup failed", "details": str(e)},
        )

    stats = await cache.get_cache_stats()
    return CleanupResponse(
        message="Cache cleanup completed",
        report=report,
        stats=stats.model_dump(mode="json"),
    )


@router.get("/news/cleanup", response_model=NewsStatsResponse)
async def news_cache_stats(cache: NewsCacheDep) -> NewsStatsResponse:
    return NewsStatsResponse(stats=await cache.get_cache_stats())


@router.delete("/news/cache", response_model=InvalidateResponse)
async def invalidate_news_cache(
    cache: NewsCacheDep,
    industry: str = Query(..., min_length=1),
) -> InvalidateResponse:
    """Drop every cached article and entry for an industry."""
    report = await cache.invalidate_cache(industry)
    return InvalidateResponse(industry=industry, report=report)
