"""Shared fixtures: in-memory SQLite database and a controllable clock."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from killmystartup.database import build_session_factory, create_all, create_engine
from killmystartup.services.competitor_cache import CompetitorCache
from killmystartup.services.news_cache import NewsCache

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest_asyncio.fixture
async def engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def news_cache(session_factory, clock) -> NewsCache:
    return NewsCache(session_factory, clock)


@pytest.fixture
def competitor_cache(session_factory, clock) -> CompetitorCache:
    return CompetitorCache(session_factory, clock)
