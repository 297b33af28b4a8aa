"""Competitor endpoints: discovery, parameter updates, scheduling, maintenance."""

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from killmystartup.core.errors import CacheError
from killmystartup.core.logging import get_logger
from killmystartup.database import utcnow
from killmystartup.deps import (
    AppSettings,
    CompetitorCacheDep,
    CompetitorSearch,
    InternalToken,
    SchedulerDep,
)
from killmystartup.schemas.cache import CleanupResponse, InvalidateResponse
from killmystartup.schemas.competitor import (
    CompetitorSearchRequest,
    CompetitorSearchResponse,
    CompetitorStatsResponse,
    TopRiskyResponse,
)
from killmystartup.schemas.schedule import (
    ScheduledRefreshRequest,
    ScheduledRefreshResponse,
    ScheduleResponse,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=CompetitorSearchResponse)
async def discover_competitors(
    data: CompetitorSearchRequest,
    service: CompetitorSearch,
) -> CompetitorSearchResponse:
    """Full discovery: cached profiles when fresh, else a new web search."""
    return await service.discover(data)


@router.get("", response_model=CompetitorStatsResponse)
async def competitors_health(cache: CompetitorCacheDep) -> CompetitorStatsResponse:
    return CompetitorStatsResponse(stats=await cache.get_cache_stats())


@router.get("/top-risky", response_model=TopRiskyResponse)
async def top_risky_competitors(
    cache: CompetitorCacheDep,
    settings: AppSettings,
    industry: str | None = None,
    limit: int = Query(5, ge=1, le=50),
) -> TopRiskyResponse:
    industry = industry or settings.default_industry
    competitors = await cache.get_top_risky_competitors(industry, limit=limit)
    return TopRiskyResponse(industry=industry, competitors=competitors)


@router.post("/update-parameters", response_model=CompetitorSearchResponse)
async def update_competitor_parameters(
    data: CompetitorSearchRequest,
    service: CompetitorSearch,
) -> CompetitorSearchResponse:
    """Cheap refresh of known competitors' figures via a chat completion."""
    return await service.update_parameters(data)


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(scheduler: SchedulerDep) -> ScheduleResponse:
    return ScheduleResponse(
        schedule=await scheduler.get_scheduling_status(),
        config=scheduler.config.to_read(),
        timestamp=utcnow(),
    )


@router.post("/scheduled-refresh", response_model=ScheduledRefreshResponse)
async def scheduled_refresh(
    data: ScheduledRefreshRequest,
    service: CompetitorSearch,
) -> ScheduledRefreshResponse:
    """Run the refresh tier the scheduler picks for the industry."""
    return await service.run_scheduled(data)


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    dependencies=[InternalToken],
)
async def cleanup_competitor_cache(cache: CompetitorCacheDep):
    try:
        report = await cache.cleanup_expired_cache()
    except CacheError as e:
        logger.error("competitor_cleanup_failed", error=str(e))
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


@router.delete("/cache", response_model=InvalidateResponse)
async def invalidate_competitor_cache(
    cache: CompetitorCacheDep,
    industry: str = Query(..., min_length=1),
) -> InvalidateResponse:
    report = await cache.invalidate_cache(industry)
    return InvalidateResponse(industry=industry, report=report)
