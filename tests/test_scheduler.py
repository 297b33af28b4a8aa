"""Tests for competitor refresh scheduling."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from killmystartup.config import Settings
from killmystartup.schemas.competitor import CompetitorDraft
from killmystartup.services.competitor_cache import PARAMETER_UPDATE_TYPE, CompetitorQuery
from killmystartup.services.scheduler import CompetitorScheduler, RefreshTier, SchedulerConfig

DISCOVERY = CompetitorQuery(industry="fintech")
UPDATE = DISCOVERY.with_update_type(PARAMETER_UPDATE_TYPE)


async def _discover(cache, ttl_hours=12, names=("Acme",)):
    await cache.store_competitors(DISCOVERY, ttl_hours, [CompetitorDraft(name=n) for n in names])


async def _update(cache, ttl_hours=2, names=("Acme",)):
    await cache.store_competitors(UPDATE, ttl_hours, [CompetitorDraft(name=n) for n in names])


@pytest.fixture
def scheduler(competitor_cache, clock) -> CompetitorScheduler:
    return CompetitorScheduler(competitor_cache, clock=clock)


class TestDecideTier:
    @pytest.mark.asyncio
    async def test_never_fetched_runs_discovery(self, scheduler):
        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_fresh_discovery_picks_parameter_update(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache)
        clock.advance(hours=3)

        assert await scheduler.decide_tier("fintech") == RefreshTier.PARAMETER_UPDATE
        assert await scheduler.should_update_parameters("fintech") is True

    @pytest.mark.asyncio
    async def test_very_recent_discovery_needs_nothing(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache)
        clock.advance(minutes=10)

        assert await scheduler.decide_tier("fintech") == RefreshTier.PARAMETER_UPDATE
        assert await scheduler.should_update_parameters("fintech") is False

    @pytest.mark.asyncio
    async def test_expired_discovery_entry_runs_discovery(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache, ttl_hours=12)
        clock.advance(hours=13)

        assert await competitor_cache.get_cached_competitors(DISCOVERY) is None
        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_unexpired_but_older_than_interval(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache, ttl_hours=48)
        clock.advance(hours=24)

        assert await scheduler.should_run_discovery("fintech") is True

    @pytest.mark.asyncio
    async def test_metadata_without_rows_runs_discovery(self, scheduler, competitor_cache):
        await competitor_cache.store.write(DISCOVERY.cache_key, "fintech", 12, [])

        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_parameter_updates_do_not_postpone_discovery(
        self, scheduler, competitor_cache, clock
    ):
        await _discover(competitor_cache, ttl_hours=12)
        for _ in range(5):
            clock.advance(hours=2)
            await _update(competitor_cache)
        clock.advance(hours=3)

        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_recurring_refreshes_rediscover_each_cache_lifetime(
        self, scheduler, competitor_cache, clock
    ):
        tiers = []
        for _ in range(30):
            tier = await scheduler.decide_tier("fintech")
            tiers.append(tier)
            if tier == RefreshTier.FULL_DISCOVERY:
                await _discover(competitor_cache, ttl_hours=12)
            else:
                await _update(competitor_cache, ttl_hours=2)
            clock.advance(hours=2)

        discovery_hours = [i * 2 for i, t in enumerate(tiers) if t == RefreshTier.FULL_DISCOVERY]
        assert discovery_hours == [0, 12, 24, 36, 48]

    @pytest.mark.asyncio
    async def test_context_selects_its_own_entry(self, scheduler, competitor_cache):
        await competitor_cache.store_competitors(
            CompetitorQuery(industry="fintech", context="payroll"), 12, [CompetitorDraft(name="Gusto")]
        )

        assert await scheduler.decide_tier("fintech", context="payroll") == RefreshTier.PARAMETER_UPDATE
        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_custom_intervals(self, competitor_cache, clock):
        config = SchedulerConfig(full_discovery_interval_hours=4, parameter_update_interval_hours=1)
        scheduler = CompetitorScheduler(competitor_cache, config, clock)
        await _discover(competitor_cache)
        clock.advance(hours=5)

        assert await scheduler.decide_tier("fintech") == RefreshTier.FULL_DISCOVERY

    @pytest.mark.asyncio
    async def test_store_error_is_due(self, scheduler, competitor_cache):
        competitor_cache.store.fetch = AsyncMock(side_effect=OperationalError("select", {}, Exception()))

        assert await scheduler.should_run_discovery("fintech") is True
        assert await scheduler.should_update_parameters("fintech") is True


class TestParameterUpdateDue:
    @pytest.mark.asyncio
    async def test_recent_update_satisfies_interval(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache)
        clock.advance(hours=3)
        await _update(competitor_cache)
        clock.advance(hours=1)

        assert await scheduler.should_update_parameters("fintech") is False

    @pytest.mark.asyncio
    async def test_due_once_interval_passes(self, scheduler, competitor_cache, clock):
        await _discover(competitor_cache)
        clock.advance(hours=3)
        await _update(competitor_cache)
        clock.advance(hours=2)

        assert await scheduler.should_update_parameters("fintech") is True
        assert await scheduler.should_run_discovery("fintech") is False


class TestNextRunTime:
    @pytest.mark.asyncio
    async def test_without_metadata_is_now(self, scheduler, clock):
        assert await scheduler.next_run_time("fintech", RefreshTier.FULL_DISCOVERY) == clock.now

    @pytest.mark.asyncio
    async def test_adds_tier_interval(self, scheduler, competitor_cache, clock):
        discovered_at = clock.now
        await _discover(competitor_cache)
        clock.advance(hours=1)

        assert await scheduler.next_run_time("fintech", RefreshTier.FULL_DISCOVERY) == (
            discovered_at + timedelta(hours=24)
        )
        assert await scheduler.next_run_time("fintech", RefreshTier.PARAMETER_UPDATE) == (
            discovered_at + timedelta(hours=2)
        )

    @pytest.mark.asyncio
    async def test_parameter_update_uses_latest_entry(self, scheduler, competitor_cache, clock):
        discovered_at = clock.now
        await _discover(competitor_cache)
        clock.advance(hours=1)
        updated_at = clock.now
        await _update(competitor_cache)

        assert await scheduler.next_run_time("fintech", RefreshTier.PARAMETER_UPDATE) == (
            updated_at + timedelta(hours=2)
        )
        assert await scheduler.next_run_time("fintech", RefreshTier.FULL_DISCOVERY) == (
            discovered_at + timedelta(hours=24)
        )


class TestSchedulingStatus:
    @pytest.mark.asyncio
    async def test_one_status_per_industry(self, competitor_cache, clock):
        config = SchedulerConfig(industries=["fintech", "SaaS"])
        scheduler = CompetitorScheduler(competitor_cache, config, clock)
        await _discover(competitor_cache)
        await competitor_cache.store_competitors(
            CompetitorQuery(industry="SaaS"), 12, [CompetitorDraft(name="Salesforce")]
        )
        clock.advance(hours=3)

        statuses = await scheduler.get_scheduling_status()

        assert [s.industry for s in statuses] == ["fintech", "SaaS"]
        assert all(not s.needs_discovery and s.needs_parameter_update for s in statuses)

    def test_config_from_settings(self):
        settings = Settings(
            full_discovery_interval_hours=12,
            parameter_update_interval_hours=1,
            monitored_industries=["Fintech"],
        )
        config = SchedulerConfig.from_settings(settings)

        assert config.interval_hours(RefreshTier.FULL_DISCOVERY) == 12
        assert config.interval_hours(RefreshTier.PARAMETER_UPDATE) == 1
        assert config.to_read().industries == ["Fintech"]
