"""News article cache tables."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from killmystartup.database import Base
from killmystartup.models.cache import CacheEntryMixin, ExpiringRecordMixin


class NewsCacheEntry(CacheEntryMixin, Base):
    """Cache metadata for one news search query."""

    __tablename__ = "news_cache_entries"


class NewsArticle(ExpiringRecordMixin, Base):
    """A news article, deduplicated by URL across all queries."""

    __tablename__ = "news_articles"

    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(String(64), nullable=False, default="Recent")
    snippet: Mapped[str | None] = mapped_column(Text, nullable=True)
    relevance: Mapped[str] = mapped_column(String(255), nullable=False)
    tag: Mapped[str] = mapped_column(String(64), nullable=False)
