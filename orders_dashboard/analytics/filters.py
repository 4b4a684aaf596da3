# orders_dashboard/analytics/filters.py
"""
Query normalization for the Orders Analytics Dashboard

Turns raw input (form values, query string parameters, arbitrary strings)
into a canonical Filter / MonthSelection.

Rules for normalize_filters(), applied in order:
1. A date is accepted only as a date object or a strict YYYY-MM-DD string
   that is a real calendar date. Otherwise the previous known-good value is
   used, or the default (Jan 1 / Dec 31 of the current year).
2. customer_id is dropped unless the caller may filter by customer.
3. A reversed range is collapsed: date_to = date_from.

normalize_filters() is total: it never raises.

VERSION: 1.2.1
CHANGELOG:
- v1.2.1: Date strings with surrounding whitespace are rejected, not trimmed
- v1.2.0: Accept camelCase keys (dateFrom/dateTo/customerId) from the route
- v1.1.0: Added is_reversed_range() so callers can warn about repairs
"""

import logging
import re
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_LOCALE, ISO_DATE_PATTERN
from .formatters import format_month_label
from .models import Filter, MonthSelection

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(ISO_DATE_PATTERN)

RawFilters = Union[Filter, Mapping[str, Any], None]


# =============================================================================
# PRIMITIVES
# =============================================================================

def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD calendar date.

    Returns None for anything else (wrong shape, impossible dates such as
    2024-02-30, surrounding whitespace, non-string values).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def normalize_customer_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def default_filters(today: Optional[date] = None) -> Filter:
    """Current calendar year, no customer."""
    today = today or date.today()
    return Filter(date_from=date(today.year, 1, 1), date_to=date(today.year, 12, 31))


def _field(raw: RawFilters, snake: str, camel: str) -> Any:
    if isinstance(raw, Filter):
        return getattr(raw, snake)
    if not isinstance(raw, Mapping):
        return None
    if snake in raw:
        return raw.get(snake)
    return raw.get(camel)


# =============================================================================
# FILTERS
# =============================================================================

def normalize_filters(
    raw: RawFilters,
    previous: Optional[Filter] = None,
    can_filter_by_customer: bool = False,
    today: Optional[date] = None,
) -> Filter:
    """
    Normalize raw filter input into a consistent Filter.

    Args:
        raw: Filter, mapping with snake_case or camelCase keys, or None
        previous: Last known-good filters, used as per-field fallback
        can_filter_by_customer: Whether the acting user holds the entitlement
        today: Reference date for defaults (tests)

    Returns:
        Filter with date_from <= date_to
    """
    defaults = default_filters(today)

    date_from = parse_iso_date(_field(raw, 'date_from', 'dateFrom'))
    if date_from is None:
        date_from = previous.date_from if previous else defaults.date_from

    date_to = parse_iso_date(_field(raw, 'date_to', 'dateTo'))
    if date_to is None:
        date_to = previous.date_to if previous else defaults.date_to

    customer_id = None
    if can_filter_by_customer:
        customer_id = normalize_customer_id(_field(raw, 'customer_id', 'customerId'))

    if date_from > date_to:
        logger.debug(f"Collapsing reversed range {date_from} > {date_to}")
        date_to = date_from

    return Filter(date_from=date_from, date_to=date_to, customer_id=customer_id)


def is_reversed_range(raw: RawFilters) -> bool:
    """True when both raw dates are valid and date_from is after date_to."""
    date_from = parse_iso_date(_field(raw, 'date_from', 'dateFrom'))
    date_to = parse_iso_date(_field(raw, 'date_to', 'dateTo'))
    return date_from is not None and date_to is not None and date_from > date_to


def filters_equal(a: Optional[Filter], b: Optional[Filter]) -> bool:
    if a is None or b is None:
        return a is b
    return (
        a.date_from == b.date_from
        and a.date_to == b.date_to
        and (a.customer_id or None) == (b.customer_id or None)
    )


def strip_customer(filters: Filter) -> Filter:
    if filters.customer_id is None:
        return filters
    return replace(filters, customer_id=None)


# =============================================================================
# MONTH SELECTION
# =============================================================================

def _as_positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def normalize_month_selection(
    year: Any,
    month: Any,
    locale: str = DEFAULT_LOCALE,
) -> Optional[MonthSelection]:
    """
    Build a MonthSelection, or None when year/month are missing, non-numeric
    or the month is outside 1..12.
    """
    year_value = _as_positive_int(year)
    month_value = _as_positive_int(month)
    if year_value is None or month_value is None:
        return None
    if month_value < 1 or month_value > 12:
        return None

    return MonthSelection(
        year=year_value,
        month=month_value,
        label=format_month_label(year_value, month_value, locale),
    )


def months_equal(a: Optional[MonthSelection], b: Optional[MonthSelection]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a.year == b.year and a.month == b.month


def parse_period(period: Any) -> Optional[Tuple[int, int]]:
    """Parse a 'YYYY-MM' trend period into (year, month)."""
    if not isinstance(period, str) or not period:
        return None
    parts = period.split('-')
    if len(parts) < 2:
        return None
    year = _as_positive_int(parts[0])
    month = _as_positive_int(parts[1])
    if year is None or month is None or month > 12:
        return None
    return year, month
