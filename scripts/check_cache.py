#!/usr/bin/env python3
"""Print the state of the news and competitor caches."""

import asyncio

from killmystartup.config import get_settings
from killmystartup.database import build_session_factory, create_engine
from killmystartup.services.competitor_cache import CompetitorCache
from killmystartup.services.news_cache import NewsCache


async def check_cache() -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    news = NewsCache(session_factory)
    competitors = CompetitorCache(session_factory)

    try:
        print("=" * 60)
        print("NEWS CACHE")
        print("=" * 60)
        news_stats = await news.get_cache_stats()
        print(f"Articles: {news_stats.total_articles}")
        print(f"Cache entries: {news_stats.total_cache_entries}")
        print(f"Oldest article: {news_stats.oldest_article or 'N/A'}")
        print(f"Newest article: {news_stats.newest_article or 'N/A'}")
        for industry, count in news_stats.by_industry.items():
            print(f"  - {industry}: {count} articles")

        print("\n" + "=" * 60)
        print("COMPETITOR CACHE")
        print("=" * 60)
        competitor_stats = await competitors.get_cache_stats()
        print(f"Profiles: {competitor_stats.total_competitors}")
        print(f"Cache entries: {competitor_stats.total_cache_entries}")
        for level, count in competitor_stats.by_risk_level.items():
            print(f"  - {level}: {count}")

        for industry in settings.monitored_industries:
            top = await competitors.get_top_risky_competitors(industry, limit=3)
            if not top:
                continue
            print(f"\nTop risky in {industry}:")
            for i, comp in enumerate(top, 1):
                print(f"  {i}. {comp.name} [{comp.risk_level}] {comp.website or 'N/A'}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(check_cache())
