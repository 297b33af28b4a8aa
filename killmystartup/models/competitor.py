"""Competitor profile cache tables."""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String, Text, case
from sqlalchemy.orm import Mapped, mapped_column

from killmystartup.database import Base
from killmystartup.models.cache import CacheEntryMixin, ExpiringRecordMixin


class RiskLevel(StrEnum):
    """Threat a competitor poses. Ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class CompetitorCacheEntry(CacheEntryMixin, Base):
    """Cache metadata for one competitor search query."""

    __tablename__ = "competitor_cache_entries"


class CompetitorProfile(ExpiringRecordMixin, Base):
    """A competitor, deduplicated by name across all queries."""

    __tablename__ = "competitor_profiles"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    founded_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    employee_count: Mapped[str | None] = mapped_column(String(32), nullable=True)
    last_funding: Mapped[str | None] = mapped_column(String(64), nullable=True)
    funding_amount: Mapped[str | None] = mapped_column(String(64), nullable=True)
    valuation: Mapped[str | None] = mapped_column(String(64), nullable=True)
    recent_news: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_level: Mapped[RiskLevel] = mapped_column(
        SAEnum(RiskLevel, name="risk_level", native_enum=False, length=16),
        nullable=False,
        default=RiskLevel.MEDIUM,
    )


def risk_rank_expr():
    """SQL expression ranking risk_level by severity (enum columns sort by name otherwise)."""
    return case(
        {level: level.rank for level in RiskLevel},
        value=CompetitorProfile.risk_level,
        else_=0,
    )
