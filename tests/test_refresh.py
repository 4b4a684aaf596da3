"""Tests for the refresh coordinator: cache-first loads and manual refresh."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from orders_dashboard.analytics.api_client import AnalyticsApiError
from orders_dashboard.analytics.constants import MESSAGES
from orders_dashboard.analytics.models import Filter, KpiResult, MonthSelection, TrendEntry
from orders_dashboard.analytics.refresh import RefreshCoordinator

pytestmark = pytest.mark.unit

FILTERS = Filter(date_from=date(2024, 1, 1), date_to=date(2024, 12, 31))
MAY = MonthSelection(2024, 5, "maj 2024")


@pytest.fixture
def coordinator(fetcher, notifier, clock) -> RefreshCoordinator:
    return RefreshCoordinator(fetcher, notifier, ttl_ms=90_000, clock=clock)


def test_cache_hit_short_circuits_network(coordinator, fetcher) -> None:
    async def scenario():
        assert await coordinator.load_kpi(FILTERS)
        assert await coordinator.load_kpi(FILTERS)

    asyncio.run(scenario())

    assert len(fetcher.calls["kpi"]) == 1
    assert coordinator.kpi.data == fetcher.kpi
    assert coordinator.kpi.error is None
    assert not coordinator.kpi.is_loading


def test_expired_cache_triggers_fresh_fetch(coordinator, fetcher, clock) -> None:
    async def scenario():
        await coordinator.load_trend(FILTERS)
        clock.advance(89_999)
        await coordinator.load_trend(FILTERS)
        clock.advance(2)
        await coordinator.load_trend(FILTERS)

    asyncio.run(scenario())

    assert len(fetcher.calls["trend"]) == 2


def test_forced_load_bypasses_read_but_writes_cache(coordinator, fetcher) -> None:
    async def scenario():
        await coordinator.load_kpi(FILTERS)
        fetcher.kpi = KpiResult(sum_net_pln=1.0, orders_count=1, avg_order_value=1.0)
        await coordinator.load_kpi(FILTERS, force=True)
        await coordinator.load_kpi(FILTERS)

    asyncio.run(scenario())

    assert len(fetcher.calls["kpi"]) == 2
    assert coordinator.kpi.data.sum_net_pln == 1.0


def test_failure_keeps_previous_data_and_notifies(coordinator, fetcher, notifier) -> None:
    async def scenario():
        await coordinator.load_trend(FILTERS)
        fetcher.errors["trend"] = AnalyticsApiError("Service unavailable", status_code=503)
        return await coordinator.load_trend(FILTERS, force=True)

    ok = asyncio.run(scenario())

    assert ok is False
    assert coordinator.trend.data == fetcher.trend
    assert coordinator.trend.error == "Service unavailable"
    assert not coordinator.trend.is_loading
    assert notifier.errors == [("Nie udało się pobrać danych (Trend m/m)", "Service unavailable")]


def test_daily_uses_month_and_customer_key(coordinator, fetcher) -> None:
    async def scenario():
        await coordinator.load_daily(MAY, "c1")
        await coordinator.load_daily(MAY, "c1")
        await coordinator.load_daily(MAY, None)

    asyncio.run(scenario())

    assert fetcher.calls["daily"] == [(2024, 5, "c1"), (2024, 5, None)]
    assert "2024-5-c1" in coordinator.daily_cache
    assert "2024-5-all" in coordinator.daily_cache


def test_refresh_all_is_single_flight(coordinator, fetcher) -> None:
    """A second forced refresh issued while the first is in flight does nothing."""

    async def scenario():
        gate = fetcher.hold("kpi")
        first = asyncio.create_task(coordinator.refresh_all(FILTERS, force=True))
        await asyncio.sleep(0)
        assert coordinator.manual.is_refreshing

        second = await coordinator.refresh_all(FILTERS, force=True)
        gate.set()
        return second, await first

    second, first = asyncio.run(scenario())

    assert second is False
    assert first is True
    assert len(fetcher.calls["kpi"]) == 1
    assert len(fetcher.calls["trend"]) == 1
    assert not coordinator.manual.is_refreshing


def test_refresh_all_skips_within_ttl_unless_forced(coordinator, fetcher, clock) -> None:
    async def scenario():
        await coordinator.refresh_all(FILTERS, force=True)
        clock.advance(1_000)
        skipped = await coordinator.refresh_all(FILTERS)
        forced = await coordinator.refresh_all(FILTERS, force=True)
        clock.advance(90_000)
        expired = await coordinator.refresh_all(FILTERS)
        return skipped, forced, expired

    skipped, forced, expired = asyncio.run(scenario())

    assert (skipped, forced, expired) == (False, True, True)
    assert len(fetcher.calls["kpi"]) == 3


def test_refresh_all_partial_failure(coordinator, fetcher, notifier, clock) -> None:
    """KPI succeeds, Trend fails: per-series state plus one aggregate error."""

    previous_trend = [TrendEntry(period="2023-12", sum_net_pln=5.0)]

    async def scenario():
        fetcher.trend = previous_trend
        await coordinator.load_trend(FILTERS)
        notifier.clear()
        fetcher.errors["trend"] = RuntimeError("timeout")
        clock.advance(100_000)
        await coordinator.refresh_all(FILTERS, force=True)

    asyncio.run(scenario())

    assert coordinator.kpi.error is None
    assert coordinator.kpi.data == fetcher.kpi
    assert coordinator.trend.error == "timeout"
    assert coordinator.trend.data == previous_trend
    assert coordinator.manual.error == MESSAGES["manual_refresh_error"]
    assert coordinator.manual.last_refreshed_at == clock.now
    assert notifier.errors == [(MESSAGES["manual_refresh_title"], MESSAGES["manual_refresh_error"])]


def test_refresh_all_total_failure_keeps_last_refreshed(coordinator, fetcher, clock) -> None:
    async def scenario():
        await coordinator.refresh_all(FILTERS, force=True)
        stamp = coordinator.manual.last_refreshed_at
        fetcher.errors["kpi"] = RuntimeError("down")
        fetcher.errors["trend"] = RuntimeError("down")
        clock.advance(5_000)
        await coordinator.refresh_all(FILTERS, force=True)
        return stamp

    stamp = asyncio.run(scenario())

    assert coordinator.manual.last_refreshed_at == stamp
    assert coordinator.manual.error is not None


def test_refresh_all_includes_daily_only_with_month(coordinator, fetcher) -> None:
    async def scenario():
        await coordinator.refresh_all(FILTERS, None, force=True)
        await coordinator.refresh_all(FILTERS, MAY, force=True)

    asyncio.run(scenario())

    assert fetcher.calls["daily"] == [(2024, 5, None)]


def test_superseded_response_is_dropped(coordinator, fetcher) -> None:
    """A slow older response must not overwrite a newer one."""

    older = Filter(date(2023, 1, 1), date(2023, 12, 31))
    slow = KpiResult(sum_net_pln=1.0, orders_count=1, avg_order_value=1.0)

    async def scenario():
        gate = fetcher.hold("kpi")
        original = fetcher.kpi
        fetcher.kpi = slow
        first = asyncio.create_task(coordinator.load_kpi(older))
        await asyncio.sleep(0)
        fetcher.gates.clear()
        fetcher.kpi = original
        await coordinator.load_kpi(FILTERS)
        gate.set()
        await first

    asyncio.run(scenario())

    assert coordinator.kpi.data == fetcher.kpi
    assert not coordinator.kpi.is_loading


def test_reset_daily_clears_state(coordinator) -> None:
    async def scenario():
        await coordinator.load_daily(MAY)

    asyncio.run(scenario())
    coordinator.reset_daily()

    assert coordinator.daily.data is None
    assert coordinator.daily.error is None


def test_clear_caches_forces_network(coordinator, fetcher) -> None:
    async def scenario():
        await coordinator.load_kpi(FILTERS)
        coordinator.clear_caches()
        await coordinator.load_kpi(FILTERS)

    asyncio.run(scenario())

    assert len(fetcher.calls["kpi"]) == 2
    assert len(coordinator.kpi_cache) == 1
