# orders_dashboard/analytics/formatters.py
"""
Locale-aware display formatting for dashboard values.

Supported locales: 'pl' (default, "1 234,56 zł") and 'en' ("PLN 1,234.56").
Unknown locales fall back to 'pl'.
"""

from typing import Optional, Union

from .constants import DEFAULT_LOCALE, MONTH_NAMES, NUMBER_CONVENTIONS, PLACEHOLDER

Number = Union[int, float]


def _conventions(locale: str) -> dict:
    return NUMBER_CONVENTIONS.get(locale, NUMBER_CONVENTIONS[DEFAULT_LOCALE])


def _localize(formatted: str, locale: str) -> str:
    """Swap the ',' / '.' produced by Python's format spec for the locale's."""
    conv = _conventions(locale)
    return (
        formatted
        .replace(',', '\x00')
        .replace('.', conv['decimal'])
        .replace('\x00', conv['group'])
    )


def format_currency(value: Optional[Number], locale: str = DEFAULT_LOCALE) -> str:
    """Format a PLN amount with 2 decimals; None renders as the placeholder."""
    if value is None:
        return PLACEHOLDER
    amount = _localize(f"{abs(value):,.2f}", locale)
    formatted = _conventions(locale)['currency'].format(value=amount)
    return f"-{formatted}" if value < 0 else formatted


def format_integer(value: Optional[Number], locale: str = DEFAULT_LOCALE) -> str:
    if value is None:
        return PLACEHOLDER
    return _localize(f"{int(value):,d}", locale)


def format_month_label(year: int, month: int, locale: str = DEFAULT_LOCALE) -> str:
    """e.g. 'czerwiec 2024' (pl) or 'June 2024' (en)."""
    names = MONTH_NAMES.get(locale, MONTH_NAMES[DEFAULT_LOCALE])
    return f"{names[month - 1]} {year}"
