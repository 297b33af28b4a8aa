"""Time-bounded record store shared by the news and competitor caches.

A cached domain is described by a RecordKind: a metadata table keyed by
cache_key and a content table keyed by a natural identity (URL, company
name). The store implements the generic get-if-fresh / put-with-expiry
contract over that pair:

- fetch(): metadata must exist and be unexpired, and at least one
  unexpired content row must exist for the topic, otherwise it is a miss
- write(): metadata upsert + content upserts in ONE transaction
- invalidate() / cleanup_expired(): bulk deletes by topic / by expiry

Session handling is explicit: the store owns an injected session factory
and opens a fresh session per operation.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from killmystartup.core.errors import CacheError, CacheWriteError
from killmystartup.core.logging import get_logger
from killmystartup.database import SessionFactory, as_utc, utcnow
from killmystartup.schemas.cache import CleanupReport

logger = get_logger(__name__)

Clock = Callable[[], datetime]


# ── Domain description ────────────────────────────────────────────


@dataclass(frozen=True)
class RecordKind:
    """Tables and merge policy of one cached domain."""

    domain: str
    entry_model: type
    record_model: type
    identity_field: str
    # Fields written on every upsert even when the incoming value is empty
    always_overwrite: frozenset[str] = field(default_factory=lambda: frozenset({"industry"}))
    # Match identities ignoring case ("ACME" and "Acme" are one row)
    casefold_identity: bool = False

    @property
    def identity_column(self):
        return getattr(self.record_model, self.identity_field)

    def identity_matches(self, identity: str):
        if self.casefold_identity:
            return func.lower(self.identity_column) == identity.lower()
        return self.identity_column == identity


@dataclass
class FreshEntry:
    """Metadata of a cache entry that was valid at read time."""

    cache_key: str
    last_fetch_at: datetime
    expires_at: datetime
    result_count: int


@dataclass
class StoreHit:
    entry: FreshEntry
    records: list[Any]


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ── Store ─────────────────────────────────────────────────────────


class TimeBoundedStore:
    """Get-if-fresh / put-with-expiry over a (metadata, content) table pair."""

    def __init__(
        self,
        kind: RecordKind,
        session_factory: SessionFactory,
        clock: Clock | None = None,
    ) -> None:
        self.kind = kind
        self.session_factory = session_factory
        self.clock: Clock = clock or utcnow

    # ── Reads ────────────────────────────────────────────────────

    async def fetch(
        self,
        cache_key: str,
        industry: str,
        *,
        ttl_hours: float | None = None,
        order_by: Sequence[Any] = (),
    ) -> StoreHit | None:
        """Return the fresh entry and its topic's unexpired rows, or None on a miss.

        Raises SQLAlchemyError on store failure; callers decide how to degrade.
        """
        entry_model = self.kind.entry_model
        record_model = self.kind.record_model
        now = self.clock()

        async with self.session_factory() as session:
            stmt = (
                select(entry_model)
                .where(entry_model.cache_key == cache_key)
                .where(entry_model.expires_at > now)
            )
            if ttl_hours is not None:
                stmt = stmt.where(entry_model.last_fetch_at > now - timedelta(hours=ttl_hours))

            entry = (await session.execute(stmt)).scalar_one_or_none()
            if entry is None:
                return None

            rows = await session.execute(
                select(record_model)
                .where(record_model.industry == industry)
                .where(record_model.expires_at > now)
                .order_by(*order_by)
            )
            records = list(rows.scalars().all())

        # Metadata without content is not a usable hit
        if not records:
            return None

        return StoreHit(
            entry=FreshEntry(
                cache_key=entry.cache_key,
                last_fetch_at=as_utc(entry.last_fetch_at),
                expires_at=as_utc(entry.expires_at),
                result_count=entry.result_count,
            ),
            records=records,
        )

    # ── Writes ───────────────────────────────────────────────────

    async def write(
        self,
        cache_key: str,
        industry: str,
        ttl_hours: float,
        records: Iterable[Mapping[str, Any]],
    ) -> datetime:
        """Upsert the metadata row and every content row atomically.

        Returns the new expires_at. On failure nothing is written and
        CacheWriteError is raised.
        """
        now = self.clock()
        expires_at = now + timedelta(hours=ttl_hours)
        records = list(records)

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._upsert_entry(
                        session,
                        cache_key=cache_key,
                        industry=industry,
                        now=now,
                        expires_at=expires_at,
                        result_count=len(records),
                    )
                    for fields in records:
                        fields = dict(fields)
                        identity = fields.pop(self.kind.identity_field)
                        fields["industry"] = industry
                        await self.upsert_content_record(
                            session, identity, fields, expires_at=expires_at, now=now
                        )
        except SQLAlchemyError as e:
            logger.error(
                "cache_store_failed",
                domain=self.kind.domain,
                industry=industry,
                error=str(e),
            )
            raise CacheWriteError(self.kind.domain, cache_key, e) from e

        return expires_at

    async def _upsert_entry(
        self,
        session: AsyncSession,
        *,
        cache_key: str,
        industry: str,
        now: datetime,
        expires_at: datetime,
        result_count: int,
    ) -> None:
        entry_model = self.kind.entry_model
        result = await session.execute(
            select(entry_model).where(entry_model.cache_key == cache_key)
        )
        existing = result.scalar_one_or_none()

        if existing:
            existing.industry = industry
            existing.last_fetch_at = now
            existing.expires_at = expires_at
            existing.result_count = result_count
        else:
            session.add(
                entry_model(
                    cache_key=cache_key,
                    industry=industry,
                    last_fetch_at=now,
                    expires_at=expires_at,
                    result_count=result_count,
                )
            )
        await session.flush()

    async def upsert_content_record(
        self,
        session: AsyncSession,
        identity: str,
        fields: Mapping[str, Any],
        *,
        expires_at: datetime,
        now: datetime,
    ) -> Any:
        """Insert or merge one content row by natural identity.

        On conflict, incoming non-empty values replace stored ones; empty
        values keep what is stored, except for always_overwrite fields.
        expires_at only ever moves later. A matched row keeps the identity
        spelling it was first stored with.
        """
        record_model = self.kind.record_model
        result = await session.execute(
            select(record_model)
            .where(self.kind.identity_matches(identity))
            .order_by(record_model.created_at)
            .limit(1)
        )
        record = result.scalars().first()

        if record is None:
            values = {k: v for k, v in fields.items() if v is not None}
            record = record_model(
                **{self.kind.identity_field: identity},
                **values,
                expires_at=expires_at,
                created_at=now,
                updated_at=now,
            )
            session.add(record)
        else:
            for name, value in fields.items():
                if name in self.kind.always_overwrite or not _is_empty(value):
                    setattr(record, name, value)
            record.expires_at = max(as_utc(record.expires_at), expires_at)
            record.updated_at = now

        await session.flush()
        return record

    # ── Deletes ──────────────────────────────────────────────────

    async def invalidate(self, industry: str) -> CleanupReport:
        """Drop every metadata and content row for a topic."""
        entry_model = self.kind.entry_model
        record_model = self.kind.record_model
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    entries = await session.execute(
                        delete(entry_model).where(entry_model.industry == industry)
                    )
                    records = await session.execute(
                        delete(record_model).where(record_model.industry == industry)
                    )
        except SQLAlchemyError as e:
            logger.error("cache_invalidate_failed", domain=self.kind.domain, error=str(e))
            raise CacheError(f"Failed to invalidate {self.kind.domain} cache for {industry}") from e

        return CleanupReport(records_deleted=records.rowcount, entries_deleted=entries.rowcount)

    async def cleanup_expired(self) -> CleanupReport:
        """Drop every metadata and content row whose expires_at has passed."""
        entry_model = self.kind.entry_model
        record_model = self.kind.record_model
        now = self.clock()
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    records = await session.execute(
                        delete(record_model).where(record_model.expires_at <= now)
                    )
                    entries = await session.execute(
                        delete(entry_model).where(entry_model.expires_at <= now)
                    )
        except SQLAlchemyError as e:
            logger.error("cache_cleanup_failed", domain=self.kind.domain, error=str(e))
            raise CacheError(f"Failed to clean up {self.kind.domain} cache") from e

        return CleanupReport(records_deleted=records.rowcount, entries_deleted=entries.rowcount)
