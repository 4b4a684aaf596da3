# orders_dashboard/analytics/refresh.py
"""
Refresh Coordinator for the Orders Analytics Dashboard

Owns the three series states (KPI, Trend, Daily), their TTL caches and the
manual refresh state. Nothing else writes to them.

Per series: idle -> loading -> loaded | errored; loading may be re-entered
from either terminal state.

Principles:
1. Cache first: a non-forced load returns the cached value when it is still
   within its TTL. A forced load skips the cache read but still writes the
   fresh result back.
2. Failures stay local: a failed load stores its message in that series'
   error and keeps the previous data; other series are unaffected.
3. refresh_all() is single-flight and reports one aggregate result.
4. Superseded responses are dropped: each load takes a per-series request
   token and only the newest token may write the series state.

VERSION: 1.3.0
CHANGELOG:
- v1.3.0: Per-series request tokens, late responses of superseded loads
          no longer overwrite newer data
- v1.2.0: refresh_all() suppresses per-series notifications and raises one
          aggregate notification instead
- v1.1.0: Successful KPI/Trend network loads touch last_refreshed_at
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .api_client import AnalyticsFetcher, extract_error_message
from .cache import Clock, TTLCache, daily_cache_key, filters_cache_key, now_ms
from .constants import (
    DEFAULT_TTL_MS,
    MESSAGES,
    SERIES_DAILY,
    SERIES_KPI,
    SERIES_LABELS,
    SERIES_TREND,
)
from .models import (
    DailyEntry,
    DataState,
    Filter,
    KpiResult,
    ManualRefreshState,
    MonthSelection,
    TrendEntry,
)
from .notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Fetch orchestration across the KPI, Trend and Daily series.

    Usage:
        coordinator = RefreshCoordinator(fetcher, notifier)
        await coordinator.load_kpi(filters)
        await coordinator.refresh_all(filters, active_month, force=True)
        coordinator.kpi.data  # KpiResult
    """

    def __init__(
        self,
        fetcher: AnalyticsFetcher,
        notifier: Optional[Notifier] = None,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Optional[Clock] = None,
    ):
        self.fetcher = fetcher
        self.notifier = notifier or LoggingNotifier()
        self.ttl_ms = ttl_ms
        self._clock = clock or now_ms

        self.kpi: DataState[KpiResult] = DataState()
        self.trend: DataState[List[TrendEntry]] = DataState()
        self.daily: DataState[List[DailyEntry]] = DataState()
        self.manual = ManualRefreshState(ttl_ms=ttl_ms)

        self.kpi_cache: TTLCache[KpiResult] = TTLCache(SERIES_KPI, clock=self._clock)
        self.trend_cache: TTLCache[List[TrendEntry]] = TTLCache(SERIES_TREND, clock=self._clock)
        self.daily_cache: TTLCache[List[DailyEntry]] = TTLCache(SERIES_DAILY, clock=self._clock)

        self._tokens: Dict[str, int] = {SERIES_KPI: 0, SERIES_TREND: 0, SERIES_DAILY: 0}

    # =========================================================================
    # SERIES LOADERS
    # =========================================================================

    async def load_kpi(self, filters: Filter, force: bool = False, notify: bool = True) -> bool:
        return await self._load(
            SERIES_KPI,
            self.kpi,
            self.kpi_cache,
            filters_cache_key(filters),
            lambda: self.fetcher.fetch_kpi(filters),
            force=force,
            notify=notify,
            touch_refreshed=True,
        )

    async def load_trend(self, filters: Filter, force: bool = False, notify: bool = True) -> bool:
        return await self._load(
            SERIES_TREND,
            self.trend,
            self.trend_cache,
            filters_cache_key(filters),
            lambda: self.fetcher.fetch_trend(filters),
            force=force,
            notify=notify,
            touch_refreshed=True,
        )

    async def load_daily(
        self,
        selection: MonthSelection,
        customer_id: Optional[str] = None,
        force: bool = False,
        notify: bool = True,
    ) -> bool:
        return await self._load(
            SERIES_DAILY,
            self.daily,
            self.daily_cache,
            daily_cache_key(selection.year, selection.month, customer_id),
            lambda: self.fetcher.fetch_daily(selection.year, selection.month, customer_id),
            force=force,
            notify=notify,
            touch_refreshed=False,
        )

    async def _load(
        self,
        series: str,
        state: DataState,
        cache: TTLCache,
        cache_key: str,
        fetch: Callable[[], Awaitable[Any]],
        force: bool,
        notify: bool,
        touch_refreshed: bool,
    ) -> bool:
        """
        Load one series into its state.

        Returns:
            True on success (cache hit or network), False on failure
        """
        self._tokens[series] += 1
        token = self._tokens[series]

        if not force:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.debug(f"♻️ [{series}] cache hit: {cache_key}")
                state.succeed(cached)
                return True

        state.start_loading()

        try:
            response = await fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            message = extract_error_message(e) or MESSAGES['fetch_error_fallback']
            logger.error(f"[{series}] fetch error: {message}")
            if token == self._tokens[series]:
                state.fail(message)
            if notify:
                self.notifier.error(
                    MESSAGES['fetch_error_title'].format(context=SERIES_LABELS[series]),
                    message,
                )
            return False

        cache.set(cache_key, response, self.ttl_ms)

        if token != self._tokens[series]:
            logger.debug(f"[{series}] dropping superseded response (token {token})")
            return True

        state.succeed(response)
        if touch_refreshed:
            self._touch_last_refreshed()
        return True

    # =========================================================================
    # MANUAL REFRESH
    # =========================================================================

    def should_refresh(self, force: bool = False) -> bool:
        """False while a refresh is in flight, or (unless forced) within the TTL window."""
        if self.manual.is_refreshing:
            logger.debug("Manual refresh already in flight, skipping")
            return False

        last = self.manual.last_refreshed_at
        if not force and last is not None and self._clock() - last < self.manual.ttl_ms:
            logger.debug("Manual refresh skipped: data still fresh")
            return False
        return True

    async def refresh_all(
        self,
        filters: Filter,
        active_month: Optional[MonthSelection] = None,
        force: bool = False,
    ) -> bool:
        """
        Reload every series at once (single-flight).

        Args:
            filters: Current normalized filters
            active_month: Selected month; Daily is reloaded only when set
            force: Ignore the TTL window since the last successful refresh

        Returns:
            True if a refresh ran, False if it was skipped
        """
        if not self.should_refresh(force):
            return False

        self.manual.is_refreshing = True
        self.manual.error = None

        loads = [
            self.load_kpi(filters, force=True, notify=False),
            self.load_trend(filters, force=True, notify=False),
        ]
        if active_month is not None:
            loads.append(
                self.load_daily(active_month, filters.customer_id, force=True, notify=False)
            )

        try:
            results = await asyncio.gather(*loads, return_exceptions=True)
        finally:
            self.manual.is_refreshing = False

        any_success = any(result is True for result in results)
        any_failure = any(result is not True for result in results)

        if any_success:
            self.manual.last_refreshed_at = self._clock()

        if any_failure:
            self.manual.error = MESSAGES['manual_refresh_error']
            logger.warning(f"Manual refresh finished with failures: {results}")
            self.notifier.error(MESSAGES['manual_refresh_title'], MESSAGES['manual_refresh_error'])
        else:
            logger.info("🔄 Manual refresh completed")

        return True

    # =========================================================================
    # HOUSEKEEPING
    # =========================================================================

    def _touch_last_refreshed(self):
        self.manual.last_refreshed_at = self._clock()

    def reset_daily(self):
        # Invalidate any in-flight daily response as well
        self._tokens[SERIES_DAILY] += 1
        self.daily.reset()

    def clear_manual_refresh_error(self):
        self.manual.error = None

    def clear_caches(self):
        for cache in (self.kpi_cache, self.trend_cache, self.daily_cache):
            cache.clear()
        logger.info("Analytics caches cleared")
