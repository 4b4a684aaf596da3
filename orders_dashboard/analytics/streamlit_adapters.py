# orders_dashboard/analytics/streamlit_adapters.py
"""
Streamlit bindings for the dashboard store.

- StreamlitQueryParams: QueryParamsStore over st.query_params. Streamlit has
  no change events; every script rerun calls poll(), which announces the
  current query string to subscribers when it differs from the last one seen.
- StreamlitNotifier: st.toast for warnings, st.error for errors.
- access_control_from_session() / sync_session_roles(): roles from
  st.session_state (set at login), re-read on every rerun.

Usage (page script):
    store = create_streamlit_store()
    asyncio.run(store.start())
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional

import streamlit as st

from ..config import AnalyticsConfig, get_config
from .access_control import AccessControl
from .api_client import AnalyticsFetcher, HttpAnalyticsFetcher
from .route_sync import RouteListener

logger = logging.getLogger(__name__)


class StreamlitQueryParams:
    def __init__(self):
        self._listeners: List[RouteListener] = []
        self._last_seen: Optional[Dict[str, str]] = None

    def get_all(self) -> Dict[str, str]:
        return {key: st.query_params[key] for key in st.query_params.keys()}

    def update(self, params: Mapping[str, Optional[str]]):
        for key, value in params.items():
            if value is None:
                if key in st.query_params:
                    del st.query_params[key]
            else:
                st.query_params[key] = str(value)
        self._last_seen = self.get_all()

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def poll(self) -> bool:
        """Announce the query string if it changed since the last poll/update."""
        current = self.get_all()
        if current == self._last_seen:
            return False
        self._last_seen = current
        for listener in list(self._listeners):
            listener(dict(current))
        return True


class StreamlitNotifier:
    def warning(self, message: str):
        st.toast(message, icon="⚠️")

    def error(self, title: str, message: str):
        st.error(f"**{title}**\n\n{message}")


def session_roles() -> List[str]:
    """Roles stored at login (st.session_state.user_roles or user_role)."""
    roles = st.session_state.get('user_roles')
    if roles is None:
        role = st.session_state.get('user_role')
        roles = [role] if role else []
    return list(roles)


def access_control_from_session() -> AccessControl:
    return AccessControl(session_roles())


def sync_session_roles(access: AccessControl) -> bool:
    """
    Re-read the session roles on a rerun (re-login, role revoked).

    Returns:
        True if the customer filter entitlement changed
    """
    before = access.can_filter_by_customer()
    access.set_roles(session_roles())
    return access.can_filter_by_customer() != before


def create_streamlit_store(
    fetcher: Optional[AnalyticsFetcher] = None,
    settings: Optional[AnalyticsConfig] = None,
):
    """Build a DashboardStore wired to Streamlit's query params, toasts and session roles."""
    from .store import DashboardStore

    settings = settings or get_config().analytics
    return DashboardStore(
        fetcher=fetcher or HttpAnalyticsFetcher(settings),
        route_store=StreamlitQueryParams(),
        access=access_control_from_session(),
        notifier=StreamlitNotifier(),
        settings=settings,
    )
