"""SQLAlchemy models package."""

from killmystartup.models.competitor import (
    CompetitorCacheEntry,
    CompetitorProfile,
    RiskLevel,
)
from killmystartup.models.news import NewsArticle, NewsCacheEntry

__all__ = [
    "CompetitorCacheEntry",
    "CompetitorProfile",
    "RiskLevel",
    "NewsArticle",
    "NewsCacheEntry",
]
