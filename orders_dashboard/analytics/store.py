# orders_dashboard/analytics/store.py
"""
Dashboard Store - synchronization engine for the Orders Analytics Dashboard

Single owner of the dashboard model for the lifetime of one dashboard view:
filters, active month, and (through the RefreshCoordinator) the three series
states and their caches.

Flow:
    input (filters edited / trend bar clicked / refresh / URL changed)
      -> normalize -> model update
      -> route push (unless the change came from the route)
      -> debounced, deduplicated fetch (cache first)
      -> view models recomputed from state

Rules:
- Filter changes are debounced (300ms by default) and deduplicated before
  KPI + Trend are loaded. Both loads settle independently.
- Daily is loaded only while a month is selected, debounced the same way,
  and reloaded when the month or the customer changes.
- Changing the date range clears the month selection.
- A month can be selected only if the loaded trend has a value for it.
- Without the customer entitlement, customer_id is stripped from the filters
  and the route, whenever the entitlement is missing or revoked.
- Route -> model updates run inside RouteSynchronizer.inbound() and never
  write back to the route.

Mutating methods run on the asyncio event loop. The entitlement guard may also
run from plain sync code (a role change): it strips the customer right away
and the refetch starts with the next wait_until_idle().

VERSION: 1.5.0
CHANGELOG:
- v1.5.0: refresh_all() updates the dedup baselines only when the refresh
          actually runs; entitlement changes reported outside the event loop
          defer the refetch to the next wait_until_idle()
- v1.4.0: Explicit lifecycle: start() for initial loads, dispose() cancels
          pending debounce timers and in-flight tasks
- v1.3.0: Route pushes happen synchronously on internal changes instead of
          after the debounce
- v1.2.0: Reversed date ranges are repaired and reported with a warning
- v1.1.0: Entitlement guard re-runs on AccessControl changes
"""

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Set, Tuple

from ..config import AnalyticsConfig, get_config
from .access_control import AccessControl
from .api_client import AnalyticsFetcher
from .cache import Clock
from .constants import MESSAGES
from .debounce import Debouncer
from .filters import (
    RawFilters,
    default_filters,
    filters_equal,
    is_reversed_range,
    months_equal,
    normalize_filters,
    normalize_month_selection,
    strip_customer,
)
from .models import (
    DailyEntry,
    DashboardSnapshot,
    DataState,
    Filter,
    KpiResult,
    ManualRefreshState,
    MonthSelection,
    TrendEntry,
)
from .notifications import LoggingNotifier, Notifier
from .refresh import RefreshCoordinator
from .route_sync import QueryParamsStore, RouteSynchronizer
from .view_models import (
    DailyRow,
    KpiCard,
    TrendPoint,
    build_daily_view_model,
    build_kpi_view_model,
    build_trend_view_model,
    has_trend_value,
)

logger = logging.getLogger(__name__)

DailyParams = Tuple[int, int, Optional[str]]


class DashboardStore:
    """
    Usage:
        store = DashboardStore(fetcher, InMemoryQueryParams(), AccessControl(['owner']))
        await store.start()
        store.set_filters({'date_from': '2024-01-01', 'date_to': '2024-03-31'})
        await store.wait_until_idle()
        store.kpi_view_model
        ...
        store.dispose()
    """

    def __init__(
        self,
        fetcher: AnalyticsFetcher,
        route_store: QueryParamsStore,
        access: AccessControl,
        notifier: Optional[Notifier] = None,
        settings: Optional[AnalyticsConfig] = None,
        clock: Optional[Clock] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        settings = settings or get_config().analytics
        self.locale = settings.locale
        self.notifier = notifier or LoggingNotifier()
        self.access = access
        self.route = RouteSynchronizer(route_store, locale=self.locale)
        self.coordinator = RefreshCoordinator(
            fetcher, self.notifier, ttl_ms=settings.cache_ttl_ms, clock=clock
        )
        self._today = today or date.today

        self._filters_debounce = Debouncer(
            settings.debounce_seconds, self._on_filters_settled, name='filters'
        )
        self._daily_debounce = Debouncer(
            settings.debounce_seconds, self._on_daily_settled, name='daily'
        )
        self._tasks: Set[asyncio.Task] = set()
        self._last_fetched_filters: Optional[Filter] = None
        self._last_daily_params: Optional[DailyParams] = None
        self._disposed = False

        # Initial model comes from whatever the address holds at mount time
        self._filters, self._active_month = self.route.read(
            self.can_filter_by_customer, today=self._today()
        )
        self.route.listen(self.apply_route_params)
        self._unsubscribe_access = access.subscribe(self._on_entitlement_changed)

        logger.info(
            f"Dashboard store created: {self._filters.date_from} → {self._filters.date_to}, "
            f"month={self._active_month.label if self._active_month else None}"
        )

    # =========================================================================
    # READ-ONLY STATE
    # =========================================================================

    @property
    def filters(self) -> Filter:
        return self._filters

    @property
    def active_month(self) -> Optional[MonthSelection]:
        return self._active_month

    @property
    def kpi_state(self) -> DataState[KpiResult]:
        return self.coordinator.kpi

    @property
    def trend_state(self) -> DataState[List[TrendEntry]]:
        return self.coordinator.trend

    @property
    def daily_state(self) -> DataState[List[DailyEntry]]:
        return self.coordinator.daily

    @property
    def manual_refresh_state(self) -> ManualRefreshState:
        return self.coordinator.manual

    @property
    def can_filter_by_customer(self) -> bool:
        return self.access.can_filter_by_customer()

    @property
    def kpi_view_model(self) -> List[KpiCard]:
        return build_kpi_view_model(self.kpi_state.data, self.locale)

    @property
    def trend_view_model(self) -> List[TrendPoint]:
        return build_trend_view_model(self.trend_state.data, self._active_month, self.locale)

    @property
    def daily_view_model(self) -> List[DailyRow]:
        return build_daily_view_model(self.daily_state.data, self.locale)

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            filters=self._filters,
            kpi=replace(self.kpi_state),
            trend=replace(self.trend_state),
            daily=replace(self.daily_state),
            active_month=self._active_month,
            last_refreshed_at=self.manual_refresh_state.last_refreshed_at,
            kpi_cards=self.kpi_view_model,
            trend_points=self.trend_view_model,
            daily_rows=self.daily_view_model,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self):
        """Canonicalize the address and load every series for the initial model."""
        if self._disposed:
            return

        self._enforce_customer_entitlement()
        self._push_route()

        self._last_fetched_filters = self._filters
        loads = [
            self.coordinator.load_kpi(self._filters),
            self.coordinator.load_trend(self._filters),
        ]
        if self._active_month is not None:
            self._last_daily_params = self._daily_params()
            loads.append(
                self.coordinator.load_daily(self._active_month, self._filters.customer_id)
            )
        await asyncio.gather(*loads)

    def dispose(self):
        """Cancel pending work and release subscriptions. The store is inert afterwards."""
        if self._disposed:
            return
        self._disposed = True

        self._filters_debounce.cancel()
        self._daily_debounce.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        self.route.close()
        self._unsubscribe_access()
        logger.info("Dashboard store disposed")

    async def wait_until_idle(self):
        """Wait for pending debounce timers and the loads they started."""
        while not self._disposed:
            await self._filters_debounce.wait()
            await self._daily_debounce.wait()
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            elif not self._filters_debounce.pending and not self._daily_debounce.pending:
                return

    # =========================================================================
    # FILTERS
    # =========================================================================

    def set_filters(self, raw: RawFilters) -> bool:
        """
        Apply user-edited filters.

        Invalid dates fall back to the current values, a reversed range is
        collapsed (with a warning) and customer_id is dropped without the
        entitlement.

        Returns:
            True if the filters changed
        """
        if self._disposed:
            return False

        if is_reversed_range(raw):
            logger.warning(f"Reversed date range repaired: {raw}")
            self.notifier.warning(MESSAGES['invalid_range'])

        normalized = normalize_filters(
            raw,
            previous=self._filters,
            can_filter_by_customer=self.can_filter_by_customer,
            today=self._today(),
        )
        return self._apply_filters(normalized)

    def reset_filters(self):
        """Back to the current calendar year, no customer, no month."""
        if self._disposed:
            return

        month_was_set = self._active_month is not None
        self._clear_month_state()
        if not self._apply_filters(default_filters(self._today())) and month_was_set:
            self._push_route()

    def _apply_filters(self, filters: Filter) -> bool:
        previous = self._filters
        if filters_equal(previous, filters):
            return False

        self._filters = filters

        if not previous.same_range(filters):
            self._clear_month_state()
        elif self._active_month is not None and previous.customer_id != filters.customer_id:
            self._schedule_daily()

        self._push_route()
        self._filters_debounce.trigger(filters)
        return True

    def _on_filters_settled(self, filters: Filter):
        if self._disposed:
            return
        if filters_equal(filters, self._last_fetched_filters):
            logger.debug(f"Filters unchanged after debounce, skipping fetch: {filters}")
            return

        self._last_fetched_filters = filters
        self._spawn(self.coordinator.load_kpi(filters))
        self._spawn(self.coordinator.load_trend(filters))

    # =========================================================================
    # MONTH SELECTION
    # =========================================================================

    def select_month(self, selection: MonthSelection) -> bool:
        """
        Drill into one month of the trend.

        Rejected with a warning unless the loaded trend has a non-null value
        for exactly that year/month.

        Returns:
            True if the active month changed
        """
        if self._disposed:
            return False

        if not has_trend_value(self.trend_state.data, selection.year, selection.month):
            logger.warning(f"Month {selection.year}-{selection.month:02d} not in loaded trend")
            self.notifier.warning(MESSAGES['month_unavailable'])
            return False

        if selection.same_month(self._active_month):
            return False

        if not selection.label:
            selection = normalize_month_selection(selection.year, selection.month, self.locale)

        self._active_month = selection
        self._push_route()
        self._schedule_daily()
        return True

    def select_period(self, year: Any, month: Any) -> bool:
        """select_month() for raw year/month values (e.g. a clicked trend point)."""
        selection = normalize_month_selection(year, month, self.locale)
        if selection is None:
            self.notifier.warning(MESSAGES['month_unavailable'])
            return False
        return self.select_month(selection)

    def clear_month(self, skip_navigation: bool = False):
        if self._disposed or self._active_month is None:
            return

        self._clear_month_state()
        if not skip_navigation:
            self._push_route()

    def _clear_month_state(self):
        self._active_month = None
        self._last_daily_params = None
        self._daily_debounce.cancel()
        self.coordinator.reset_daily()

    def _daily_params(self) -> Optional[DailyParams]:
        if self._active_month is None:
            return None
        return self._active_month.year, self._active_month.month, self._filters.customer_id

    def _schedule_daily(self):
        params = self._daily_params()
        if params is not None:
            self._daily_debounce.trigger(params)

    def _on_daily_settled(self, params: DailyParams):
        if self._disposed or self._active_month is None:
            return
        current = self._daily_params()
        if params != current:
            return
        if current == self._last_daily_params:
            logger.debug(f"Daily params unchanged after debounce, skipping fetch: {current}")
            return

        self._last_daily_params = current
        self._spawn(self.coordinator.load_daily(self._active_month, self._filters.customer_id))

    # =========================================================================
    # REFRESH
    # =========================================================================

    async def refresh_all(self, force: bool = False) -> bool:
        """Manual refresh of every series (single-flight, one aggregate result)."""
        if self._disposed or not self.coordinator.should_refresh(force):
            return False

        # Only a refresh that actually runs covers pending debounced loads
        self._last_fetched_filters = self._filters
        if self._active_month is not None:
            self._last_daily_params = self._daily_params()
        return await self.coordinator.refresh_all(self._filters, self._active_month, force=force)

    async def refresh_daily(self, force: bool = True) -> bool:
        if self._disposed or self._active_month is None:
            return False

        self._last_daily_params = self._daily_params()
        return await self.coordinator.load_daily(
            self._active_month, self._filters.customer_id, force=force
        )

    def clear_manual_refresh_error(self):
        self.coordinator.clear_manual_refresh_error()

    # =========================================================================
    # ROUTE
    # =========================================================================

    def apply_route_params(self, params: Mapping[str, Optional[str]]):
        """
        Route -> model (back/forward, deep link, page reload).

        Applies only what differs from the current model and never writes
        back to the route.
        """
        if self._disposed:
            return

        filters, month = self.route.parse(
            params, self.can_filter_by_customer, today=self._today()
        )
        filters_changed = not filters_equal(filters, self._filters)
        month_changed = not months_equal(month, self._active_month)
        if not filters_changed and not month_changed:
            return

        logger.info(f"Applying route params: {dict(params)}")
        customer_changed = filters.customer_id != self._filters.customer_id

        with self.route.inbound():
            if filters_changed:
                self._filters = filters
                self._filters_debounce.trigger(filters)

            if month_changed:
                if month is None:
                    self._clear_month_state()
                else:
                    self._active_month = month

            if self._active_month is not None and (month_changed or customer_changed):
                self._schedule_daily()

    def _push_route(self) -> bool:
        return self.route.push(self._filters, self._active_month, self.can_filter_by_customer)

    # =========================================================================
    # ENTITLEMENT GUARD
    # =========================================================================

    def on_entitlement_changed(self):
        """Re-run the customer filter guard (for entitlement sources without events)."""
        if not self._disposed:
            self._enforce_customer_entitlement()

    def _on_entitlement_changed(self, allowed: bool):
        self.on_entitlement_changed()

    def _enforce_customer_entitlement(self):
        if self.can_filter_by_customer or self._filters.customer_id is None:
            return

        logger.info("Customer filter stripped: entitlement missing")
        self._filters = strip_customer(self._filters)

        if not self.route.syncing:
            self._push_route()

        self._filters_debounce.trigger(self._filters)
        self._schedule_daily()

    # =========================================================================
    # TASKS
    # =========================================================================

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def __repr__(self) -> str:
        return (
            f"DashboardStore(filters={self._filters}, month={self._active_month}, "
            f"disposed={self._disposed})"
        )
