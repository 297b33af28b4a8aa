"""Cache maintenance worker: periodic cleanup of expired cache rows.

Run with: arq killmystartup.workers.cache_tasks.WorkerSettings
"""

from __future__ import annotations

from arq import cron
from arq.connections import RedisSettings

from killmystartup.config import get_settings
from killmystartup.core.errors import CacheError
from killmystartup.core.logging import get_logger, setup_logging
from killmystartup.database import build_session_factory, create_engine
from killmystartup.services.competitor_cache import CompetitorCache
from killmystartup.services.news_cache import NewsCache

settings = get_settings()
logger = get_logger(__name__)


async def startup(ctx: dict) -> None:
    setup_logging()
    engine = create_engine(settings.database_url, echo=settings.database_echo)
    ctx["engine"] = engine
    ctx["session_factory"] = build_session_factory(engine)
    logger.info("cache_worker_started")


async def shutdown(ctx: dict) -> None:
    engine = ctx.get("engine")
    if engine is not None:
        await engine.dispose()
    logger.info("cache_worker_stopped")


async def cleanup_expired_caches(ctx: dict) -> dict:
    """Arq task: run both caches' expiry cleanup.

    A failure in one cache does not skip the other; each outcome is
    reported separately.
    """
    session_factory = ctx["session_factory"]
    outcome: dict[str, dict] = {}

    for name, cache in (
        ("news", NewsCache(session_factory)),
        ("competitors", CompetitorCache(session_factory)),
    ):
        try:
            report = await cache.cleanup_expired_cache()
        except CacheError as e:
            logger.error("cache_cleanup_task_failed", cache=name, error=str(e))
            outcome[name] = {"status": "error", "error": str(e)}
            continue
        outcome[name] = {"status": "ok", **report.model_dump()}

    logger.info("cache_cleanup_task_completed", **{k: v["status"] for k, v in outcome.items()})
    return outcome


class WorkerSettings:
    functions = [cleanup_expired_caches]
    cron_jobs = [
        cron(cleanup_expired_caches, minute=settings.cleanup_cron_minute, run_at_startup=False),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
