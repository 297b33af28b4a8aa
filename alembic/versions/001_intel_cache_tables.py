"""News and competitor cache tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Metadata tables (one row per cached query) and content tables (one row
per article URL / competitor name), each with its own expires_at.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _cache_entry_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cache_key", sa.String(64), nullable=False, comment="SHA-256 of canonical query fields"),
        sa.Column("industry", sa.String(255), nullable=False),
        sa.Column("last_fetch_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("result_count", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cache_key"),
    )
    op.create_index(f"ix_{name}_industry", name, ["industry"])
    # Index for the cleanup worker
    op.create_index(f"ix_{name}_expires_at", name, ["expires_at"])


def _expiring_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("industry", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    _cache_entry_table("news_cache_entries")
    _cache_entry_table("competitor_cache_entries")

    op.create_table(
        "news_articles",
        *_expiring_columns(),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("date", sa.String(64), nullable=False, server_default="Recent"),
        sa.Column("snippet", sa.Text(), nullable=True),
        sa.Column("relevance", sa.String(255), nullable=False),
        sa.Column("tag", sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("url"),
    )
    op.create_index("ix_news_articles_industry", "news_articles", ["industry"])
    op.create_index("ix_news_articles_expires_at", "news_articles", ["expires_at"])

    op.create_table(
        "competitor_profiles",
        *_expiring_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("founded_year", sa.Integer(), nullable=True),
        sa.Column("employee_count", sa.String(32), nullable=True),
        sa.Column("last_funding", sa.String(64), nullable=True),
        sa.Column("funding_amount", sa.String(64), nullable=True),
        sa.Column("valuation", sa.String(64), nullable=True),
        sa.Column("recent_news", sa.Text(), nullable=True),
        sa.Column(
            "risk_level",
            sa.Enum("LOW", "MEDIUM", "HIGH", "CRITICAL", name="risk_level", native_enum=False, length=16),
            nullable=False,
            server_default="MEDIUM",
            comment="LOW | MEDIUM | HIGH | CRITICAL",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_competitor_profiles_industry", "competitor_profiles", ["industry"])
    op.create_index("ix_competitor_profiles_expires_at", "competitor_profiles", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_competitor_profiles_expires_at", table_name="competitor_profiles")
    op.drop_index("ix_competitor_profiles_industry", table_name="competitor_profiles")
    op.drop_table("competitor_profiles")
    op.drop_index("ix_news_articles_expires_at", table_name="news_articles")
    op.drop_index("ix_news_articles_industry", table_name="news_articles")
    op.drop_table("news_articles")
    for name in ("competitor_cache_entries", "news_cache_entries"):
        op.drop_index(f"ix_{name}_expires_at", table_name=name)
        op.drop_index(f"ix_{name}_industry", table_name=name)
        op.drop_table(name)
