# app.py
"""
Orders Analytics Dashboard - Streamlit Entry Point

Version: 1.5.0

The DashboardStore lives in st.session_state for the whole browser session.
Every rerun: re-read the session roles, poll the query string (back/forward,
edited URL), apply the widget action of this run, then wait for the
debounced loads to settle.
"""

import asyncio
import logging
from datetime import date

import streamlit as st

from orders_dashboard import configure_logging
from orders_dashboard.analytics.streamlit_adapters import create_streamlit_store, sync_session_roles
from orders_dashboard.analytics.view_models import daily_frame, trend_frame

configure_logging()
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Orders Analytics"
APP_ICON = "📊"

st.set_page_config(page_title=APP_NAME, page_icon=APP_ICON, layout="wide")


async def _run(store, action=None):
    if action is not None:
        action()
    await store.wait_until_idle()


def get_store():
    if 'orders_dashboard_store' not in st.session_state:
        store = create_streamlit_store()
        asyncio.run(store.start())
        st.session_state['orders_dashboard_store'] = store
        logger.info("Dashboard store initialized for session")
    return st.session_state['orders_dashboard_store']


def _sync_rerun(store):
    sync_session_roles(store.access)
    store.route.store.poll()


store = get_store()
asyncio.run(_run(store, lambda: _sync_rerun(store)))

# ==================== FILTERS ====================

with st.sidebar:
    st.header(f"{APP_ICON} Filtry")
    with st.form("filters"):
        date_from = st.date_input("Od", value=store.filters.date_from)
        date_to = st.date_input("Do", value=store.filters.date_to)
        customer_id = None
        if store.can_filter_by_customer:
            customer_id = st.text_input("Klient (ID)", value=store.filters.customer_id or "")
        submitted = st.form_submit_button("Zastosuj", type="primary")

    if submitted:
        raw = {'date_from': date_from, 'date_to': date_to, 'customer_id': customer_id}
        asyncio.run(_run(store, lambda: store.set_filters(raw)))

    col_reset, col_refresh = st.columns(2)
    if col_reset.button("Resetuj"):
        asyncio.run(_run(store, store.reset_filters))
    if col_refresh.button("🔄 Odśwież", disabled=store.manual_refresh_state.is_refreshing):
        asyncio.run(store.refresh_all(force=True))

    refreshed = store.manual_refresh_state.last_refreshed_datetime
    if refreshed:
        st.caption(f"Ostatnie odświeżenie: {refreshed:%H:%M:%S}")

# ==================== KPI ====================

st.title(f"{APP_ICON} {APP_NAME}")

for column, card in zip(st.columns(3), store.kpi_view_model):
    column.metric(card.label, card.value, help=card.tooltip)
if store.kpi_state.error:
    st.warning(store.kpi_state.error)

# ==================== TREND ====================

st.subheader("Trend m/m")
points = store.trend_view_model
trend_df = trend_frame(points)
if not trend_df.empty:
    st.bar_chart(trend_df, x='period', y='value_pln')
    selectable = [p for p in points if p.value_pln is not None]
    labels = {f"{p.year}-{p.month:02d}": p for p in selectable}
    choice = st.selectbox(
        "Szczegóły miesiąca",
        options=[""] + list(labels),
        index=([""] + list(labels)).index(next((k for k, p in labels.items() if p.is_active), "")),
    )
    if choice and not labels[choice].is_active:
        asyncio.run(_run(store, lambda: store.select_period(labels[choice].year, labels[choice].month)))
        st.rerun()
    elif not choice and store.active_month:
        asyncio.run(_run(store, store.clear_month))
        st.rerun()
if store.trend_state.error:
    st.warning(store.trend_state.error)

# ==================== DAILY ====================

if store.active_month:
    st.subheader(f"Dane dzienne - {store.active_month.label}")
    st.dataframe(daily_frame(store.daily_view_model), use_container_width=True)
    if store.daily_state.error:
        st.warning(store.daily_state.error)

st.caption(f"© {date.today().year} Orders Analytics")
