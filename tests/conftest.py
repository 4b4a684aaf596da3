"""Pytest fixtures shared across the dashboard engine tests."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from orders_dashboard.config import AnalyticsConfig
from orders_dashboard.analytics.access_control import AccessControl
from orders_dashboard.analytics.models import DailyEntry, KpiResult, TrendEntry
from orders_dashboard.analytics.notifications import RecordingNotifier
from orders_dashboard.analytics.route_sync import InMemoryQueryParams
from orders_dashboard.analytics.store import DashboardStore

TODAY = date(2024, 6, 15)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeFetcher:
    """AnalyticsFetcher double recording calls; gates hold responses until released."""

    def __init__(self) -> None:
        self.kpi = KpiResult(sum_net_pln=1234.5, orders_count=3, avg_order_value=411.5)
        self.trend = [
            TrendEntry(period="2024-05", sum_net_pln=1200.0),
            TrendEntry(period="2024-06", sum_net_pln=None),
            TrendEntry(period="2024-07", sum_net_pln=34.5),
        ]
        self.daily = [
            DailyEntry(date="2024-05-02", sum_net_pln=100.0, orders_count=1),
            DailyEntry(date="2024-05-17", sum_net_pln=1100.0, orders_count=2),
        ]
        self.calls: dict[str, list] = {"kpi": [], "trend": [], "daily": []}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}

    def hold(self, series: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[series] = gate
        return gate

    async def _respond(self, series: str, args, value):
        self.calls[series].append(args)
        gate = self.gates.get(series)
        if gate is not None:
            await gate.wait()
        error = self.errors.get(series)
        if error is not None:
            raise error
        return value

    async def fetch_kpi(self, filters):
        return await self._respond("kpi", filters, self.kpi)

    async def fetch_trend(self, filters):
        return await self._respond("trend", filters, self.trend)

    async def fetch_daily(self, year, month, customer_id=None):
        return await self._respond("daily", (year, month, customer_id), self.daily)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings() -> AnalyticsConfig:
    """Tiny debounce so tests settle quickly."""

    return AnalyticsConfig(debounce_ms=5, cache_ttl_ms=90_000, locale="pl")


@pytest.fixture
def make_store(fetcher, notifier, settings, clock):
    """Return a factory building a DashboardStore over an in-memory address."""

    def _make(params=None, roles=("owner",)):
        route = InMemoryQueryParams(params or {})
        access = AccessControl(roles)
        store = DashboardStore(
            fetcher,
            route,
            access,
            notifier=notifier,
            settings=settings,
            clock=clock,
            today=lambda: TODAY,
        )
        return store, route, access

    return _make
