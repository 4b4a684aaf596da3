# orders_dashboard/analytics/__init__.py
"""
Orders Analytics Dashboard - synchronization engine

Keeps filter state, query string, cached remote series (KPI, monthly Trend,
Daily breakdown) and view models consistent.

Modules:
- models: Filter, MonthSelection, DataState, ManualRefreshState, series DTOs
- filters: Query normalization (total, never raises)
- cache: TTL caches with lazy eviction and deterministic keys
- route_sync: Query string <-> model synchronization
- refresh: Refresh coordinator (cache-first loads, single-flight refresh)
- view_models: Display projection (KPI cards, trend points, daily rows)
- store: DashboardStore facade tying everything together
- streamlit_adapters: st.query_params / st.toast / session roles bindings

VERSION: 1.4.0
"""

from .access_control import AccessControl
from .api_client import AnalyticsApiError, AnalyticsFetcher, HttpAnalyticsFetcher
from .cache import TTLCache, daily_cache_key, filters_cache_key
from .filters import normalize_filters, normalize_month_selection
from .models import (
    DailyEntry,
    DataState,
    Filter,
    KpiResult,
    ManualRefreshState,
    MonthSelection,
    TrendEntry,
)
from .notifications import LoggingNotifier, Notifier, RecordingNotifier
from .refresh import RefreshCoordinator
from .route_sync import InMemoryQueryParams, QueryParamsStore, RouteSynchronizer
from .store import DashboardStore
from .view_models import (
    build_daily_view_model,
    build_kpi_view_model,
    build_trend_view_model,
)

__all__ = [
    'AccessControl',
    'AnalyticsApiError',
    'AnalyticsFetcher',
    'HttpAnalyticsFetcher',
    'TTLCache',
    'daily_cache_key',
    'filters_cache_key',
    'normalize_filters',
    'normalize_month_selection',
    'DailyEntry',
    'DataState',
    'Filter',
    'KpiResult',
    'ManualRefreshState',
    'MonthSelection',
    'TrendEntry',
    'LoggingNotifier',
    'Notifier',
    'RecordingNotifier',
    'RefreshCoordinator',
    'InMemoryQueryParams',
    'QueryParamsStore',
    'RouteSynchronizer',
    'DashboardStore',
    'build_daily_view_model',
    'build_kpi_view_model',
    'build_trend_view_model',
]
