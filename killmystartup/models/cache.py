"""Shared columns for cache metadata and expiring content tables.

Every cached domain has two tables:
- a metadata table: one row per logical query (cache_key), recording when
  the provider was last called and when the entry goes stale
- a content table: one row per natural identity (URL, company name), each
  with its own expires_at
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class CacheEntryMixin:
    """Metadata for one cached provider query."""

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    cache_key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, comment="SHA-256 of canonical query fields"
    )
    industry: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    last_fetch_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    result_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ExpiringRecordMixin:
    """Columns shared by every cached content row."""

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    industry: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
