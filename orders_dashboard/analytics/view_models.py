# orders_dashboard/analytics/view_models.py
"""
View-model projection for the Orders Analytics Dashboard

Pure functions: raw series + active month -> display-ready KPI cards, trend
points and daily rows. No side effects, no access to the store.

A trend value of None means "no orders in that period" and is rendered as a
placeholder, never as zero.

VERSION: 1.1.0
CHANGELOG:
- v1.1.0: Added trend_frame()/daily_frame() for st.dataframe display
"""

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

import pandas as pd

from .constants import DEFAULT_LOCALE, KPI_CARDS, PLACEHOLDER
from .filters import parse_iso_date, parse_period
from .formatters import format_currency, format_integer
from .models import DailyEntry, KpiResult, MonthSelection, TrendEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KpiCard:
    key: str
    label: str
    value: str
    tooltip: Optional[str] = None


@dataclass(frozen=True)
class TrendPoint:
    period: str
    year: int
    month: int
    value_pln: Optional[float]
    formatted_value: str
    is_active: bool


@dataclass(frozen=True)
class DailyRow:
    date: str
    day: int
    net_pln: float
    orders_count: int
    formatted_net: str
    formatted_orders: str


# =============================================================================
# KPI
# =============================================================================

def build_kpi_view_model(kpi: Optional[KpiResult], locale: str = DEFAULT_LOCALE) -> List[KpiCard]:
    cards = KPI_CARDS.get(locale, KPI_CARDS[DEFAULT_LOCALE])

    if kpi is None:
        return [
            KpiCard(key=key, label=cards[key]['label'], value=PLACEHOLDER)
            for key in ('sumNet', 'ordersCount', 'avgOrder')
        ]

    values = {
        'sumNet': format_currency(kpi.sum_net_pln, locale),
        'ordersCount': format_integer(kpi.orders_count, locale),
        'avgOrder': format_currency(kpi.avg_order_value, locale),
    }
    return [
        KpiCard(key=key, label=cards[key]['label'], value=value, tooltip=cards[key]['tooltip'])
        for key, value in values.items()
    ]


# =============================================================================
# TREND
# =============================================================================

def build_trend_view_model(
    trend: Optional[Sequence[TrendEntry]],
    active_month: Optional[MonthSelection] = None,
    locale: str = DEFAULT_LOCALE,
) -> List[TrendPoint]:
    points = []
    for entry in trend or []:
        parsed = parse_period(entry.period)
        year, month = parsed if parsed else (0, 0)
        is_active = bool(
            active_month
            and parsed
            and active_month.year == year
            and active_month.month == month
        )
        points.append(TrendPoint(
            period=entry.period,
            year=year,
            month=month,
            value_pln=entry.sum_net_pln,
            formatted_value=format_currency(entry.sum_net_pln, locale),
            is_active=is_active,
        ))
    return points


def has_trend_value(trend: Optional[Sequence[TrendEntry]], year: int, month: int) -> bool:
    """True when the trend holds a non-null value for exactly year/month."""
    for entry in trend or []:
        if entry.sum_net_pln is None:
            continue
        if parse_period(entry.period) == (year, month):
            return True
    return False


# =============================================================================
# DAILY
# =============================================================================

def day_of_month(value: str) -> int:
    parsed = parse_iso_date(value)
    return parsed.day if parsed else 0


def build_daily_view_model(
    daily: Optional[Sequence[DailyEntry]],
    locale: str = DEFAULT_LOCALE,
) -> List[DailyRow]:
    return [
        DailyRow(
            date=entry.date,
            day=day_of_month(entry.date),
            net_pln=entry.sum_net_pln,
            orders_count=entry.orders_count,
            formatted_net=format_currency(entry.sum_net_pln, locale),
            formatted_orders=format_integer(entry.orders_count, locale),
        )
        for entry in daily or []
    ]


# =============================================================================
# TABLES
# =============================================================================

def trend_frame(points: Sequence[TrendPoint]) -> pd.DataFrame:
    columns = list(TrendPoint.__dataclass_fields__)
    if not points:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([asdict(point) for point in points], columns=columns)


def daily_frame(rows: Sequence[DailyRow]) -> pd.DataFrame:
    """Daily rows as a DataFrame indexed by day of month."""
    columns = list(DailyRow.__dataclass_fields__)
    if not rows:
        return pd.DataFrame(columns=columns).set_index('day')
    df = pd.DataFrame([asdict(row) for row in rows], columns=columns)
    return df.sort_values('day').set_index('day')
