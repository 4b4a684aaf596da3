# orders_dashboard/analytics/api_client.py
"""
Remote fetcher for the analytics series (KPI, Trend, Daily).

The engine depends only on the AnalyticsFetcher protocol. HttpAnalyticsFetcher
is the reference implementation against the REST API:

    GET /api/analytics/kpi    ?dateFrom&dateTo&customerId -> KPI object
    GET /api/analytics/trend  ?dateFrom&dateTo&customerId -> [{period, sumNetPln}]
    GET /api/analytics/daily  ?year&month&customerId      -> [{date, sumNetPln, ordersCount}]

No retries are attempted here; timeouts come from the configured
request_timeout.

VERSION: 1.1.0
CHANGELOG:
- v1.1.0: Blocking requests calls moved to a worker thread (asyncio.to_thread)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests

from ..config import AnalyticsConfig, get_config
from .models import DailyEntry, Filter, KpiResult, TrendEntry

logger = logging.getLogger(__name__)


class AnalyticsApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AnalyticsFetcher(Protocol):
    async def fetch_kpi(self, filters: Filter) -> KpiResult: ...

    async def fetch_trend(self, filters: Filter) -> List[TrendEntry]: ...

    async def fetch_daily(
        self, year: int, month: int, customer_id: Optional[str] = None
    ) -> List[DailyEntry]: ...


def extract_error_message(error: Any) -> Optional[str]:
    """
    Best-effort human readable message from a fetch failure.

    Looks at: plain strings, a `message` attribute, a nested
    `error.message` (dict or object), then str(exception).
    """
    if not error:
        return None
    if isinstance(error, str):
        return error

    message = getattr(error, 'message', None)
    if isinstance(message, str) and message:
        return message

    nested = getattr(error, 'error', None)
    if isinstance(error, dict):
        message = error.get('message')
        if message:
            return str(message)
        nested = error.get('error')
    if isinstance(nested, dict) and nested.get('message'):
        return str(nested['message'])
    if nested is not None and getattr(nested, 'message', None):
        return str(nested.message)

    if isinstance(error, BaseException) and str(error):
        return str(error)
    return None


def clean_params(params: Dict[str, Any]) -> Dict[str, str]:
    """Drop None/empty values, stringify the rest."""
    return {
        key: str(value)
        for key, value in params.items()
        if value is not None and value != ''
    }


def range_params(filters: Filter) -> Dict[str, str]:
    return clean_params({
        'dateFrom': filters.date_from.isoformat(),
        'dateTo': filters.date_to.isoformat(),
        'customerId': filters.customer_id,
    })


class HttpAnalyticsFetcher:
    """
    requests-based client for the analytics endpoints.

    Usage:
        fetcher = HttpAnalyticsFetcher()
        kpi = await fetcher.fetch_kpi(filters)
    """

    def __init__(
        self,
        settings: Optional[AnalyticsConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or get_config().analytics
        self.session = session or requests.Session()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _get(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.settings.api_base_url}/api/analytics/{path.lstrip('/')}"
        headers = {'Accept': 'application/json', 'Cache-Control': 'no-cache'}
        if self.settings.auth_token:
            headers['Authorization'] = f"Bearer {self.settings.auth_token}"

        try:
            resp = self.session.get(
                url, params=params, headers=headers, timeout=self.settings.request_timeout
            )
        except requests.RequestException as exc:
            raise AnalyticsApiError(f"Request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise AnalyticsApiError(self._error_text(resp), status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as exc:
            raise AnalyticsApiError("Response is not JSON", status_code=resp.status_code) from exc

    @staticmethod
    def _error_text(resp: requests.Response) -> str:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        message = extract_error_message(payload) if isinstance(payload, dict) else None
        return message or f"HTTP {resp.status_code}: {resp.text}"

    # =========================================================================
    # SERIES
    # =========================================================================

    def get_kpi(self, filters: Filter) -> KpiResult:
        return KpiResult.from_dict(self._get('kpi', range_params(filters)))

    def get_trend(self, filters: Filter) -> List[TrendEntry]:
        payload = self._get('trend', range_params(filters))
        return [TrendEntry.from_dict(item) for item in payload or []]

    def get_daily(self, year: int, month: int, customer_id: Optional[str] = None) -> List[DailyEntry]:
        params = clean_params({'year': year, 'month': month, 'customerId': customer_id})
        payload = self._get('daily', params)
        return [DailyEntry.from_dict(item) for item in payload or []]

    async def fetch_kpi(self, filters: Filter) -> KpiResult:
        return await asyncio.to_thread(self.get_kpi, filters)

    async def fetch_trend(self, filters: Filter) -> List[TrendEntry]:
        return await asyncio.to_thread(self.get_trend, filters)

    async def fetch_daily(
        self, year: int, month: int, customer_id: Optional[str] = None
    ) -> List[DailyEntry]:
        return await asyncio.to_thread(self.get_daily, year, month, customer_id)

    def close(self):
        self.session.close()
