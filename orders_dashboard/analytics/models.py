# orders_dashboard/analytics/models.py
"""
Value objects and state containers for the Orders Analytics Dashboard.

VERSION: 1.1.0
CHANGELOG:
- v1.1.0: Added DashboardSnapshot for read-only consumers (page, tests)
- v1.0.0: Filter, MonthSelection, DataState, ManualRefreshState, series DTOs

Filter and MonthSelection are immutable; DataState and ManualRefreshState are
mutated only by the RefreshCoordinator.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar('T')


# =============================================================================
# FILTER MODEL
# =============================================================================

@dataclass(frozen=True)
class Filter:
    """Date range (both ends inclusive) plus optional customer scope."""
    date_from: date
    date_to: date
    customer_id: Optional[str] = None

    def same_range(self, other: 'Filter') -> bool:
        return self.date_from == other.date_from and self.date_to == other.date_to

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'date_from': self.date_from.isoformat(),
            'date_to': self.date_to.isoformat(),
            'customer_id': self.customer_id,
        }


@dataclass(frozen=True)
class MonthSelection:
    """Drill-down into one year/month of the trend."""
    year: int
    month: int
    label: str = ''

    def same_month(self, other: Optional['MonthSelection']) -> bool:
        return other is not None and self.year == other.year and self.month == other.month


# =============================================================================
# SERIES DTOs
# =============================================================================

@dataclass(frozen=True)
class KpiResult:
    sum_net_pln: float
    orders_count: int
    avg_order_value: float

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'KpiResult':
        return cls(
            sum_net_pln=float(payload.get('sumNetPln') or 0),
            orders_count=int(payload.get('ordersCount') or 0),
            avg_order_value=float(payload.get('avgOrderValue') or 0),
        )


@dataclass(frozen=True)
class TrendEntry:
    """One month of the trend. sum_net_pln is None when there were no orders."""
    period: str
    sum_net_pln: Optional[float]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'TrendEntry':
        value = payload.get('sumNetPln')
        return cls(
            period=str(payload.get('period') or ''),
            sum_net_pln=None if value is None else float(value),
        )


@dataclass(frozen=True)
class DailyEntry:
    date: str
    sum_net_pln: float
    orders_count: int

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'DailyEntry':
        return cls(
            date=str(payload.get('date') or ''),
            sum_net_pln=float(payload.get('sumNetPln') or 0),
            orders_count=int(payload.get('ordersCount') or 0),
        )


# =============================================================================
# STATE CONTAINERS
# =============================================================================

@dataclass
class DataState(Generic[T]):
    """
    Fetch state of one series.

    Lifecycle: empty -> loading -> loaded | errored. A failed fetch keeps the
    previous data so the dashboard is never blanked by a transient error.
    """
    data: Optional[T] = None
    is_loading: bool = False
    error: Optional[str] = None

    def start_loading(self):
        self.is_loading = True
        self.error = None

    def succeed(self, data: T):
        self.data = data
        self.is_loading = False
        self.error = None

    def fail(self, message: str):
        self.is_loading = False
        self.error = message

    def reset(self):
        self.data = None
        self.is_loading = False
        self.error = None


@dataclass
class ManualRefreshState:
    last_refreshed_at: Optional[float] = None  # ms, same clock as the caches
    is_refreshing: bool = False
    ttl_ms: int = 90_000
    error: Optional[str] = None

    @property
    def last_refreshed_datetime(self) -> Optional[datetime]:
        if self.last_refreshed_at is None:
            return None
        return datetime.fromtimestamp(self.last_refreshed_at / 1000)


@dataclass(frozen=True)
class DashboardSnapshot:
    filters: Filter
    kpi: DataState
    trend: DataState
    daily: DataState
    active_month: Optional[MonthSelection]
    last_refreshed_at: Optional[float]
    kpi_cards: List[Any] = field(default_factory=list)
    trend_points: List[Any] = field(default_factory=list)
    daily_rows: List[Any] = field(default_factory=list)
