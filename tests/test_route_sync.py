"""Unit tests for query string <-> model synchronization."""

from __future__ import annotations

from datetime import date

import pytest

from orders_dashboard.analytics.models import Filter, MonthSelection
from orders_dashboard.analytics.route_sync import InMemoryQueryParams, RouteSynchronizer

pytestmark = pytest.mark.unit

TODAY = date(2024, 6, 15)


def test_filter_round_trips_through_route_params() -> None:
    """Encoding then decoding a Filter (with entitlement) yields an equal Filter."""

    sync = RouteSynchronizer(InMemoryQueryParams())
    original = Filter(date_from=date(2024, 1, 1), date_to=date(2024, 3, 31), customer_id="c1")

    sync.push(original, None, can_filter_by_customer=True)
    decoded, month = sync.read(can_filter_by_customer=True, today=TODAY)

    assert decoded == original
    assert month is None
    assert sync.store.get_all() == {"dateFrom": "2024-01-01", "dateTo": "2024-03-31", "customerId": "c1"}


def test_push_merges_unrelated_params_and_drops_empty_keys() -> None:
    store = InMemoryQueryParams({"tab": "orders", "customerId": "old", "year": "2023", "month": "1"})
    sync = RouteSynchronizer(store)

    sync.push(Filter(date(2024, 1, 1), date(2024, 1, 31)), None, can_filter_by_customer=True)

    assert store.get_all() == {"tab": "orders", "dateFrom": "2024-01-01", "dateTo": "2024-01-31"}


def test_customer_omitted_without_entitlement() -> None:
    store = InMemoryQueryParams()
    sync = RouteSynchronizer(store)

    sync.push(Filter(date(2024, 1, 1), date(2024, 1, 31), "c1"), None, can_filter_by_customer=False)

    assert "customerId" not in store.get_all()


def test_year_and_month_written_together() -> None:
    store = InMemoryQueryParams()
    sync = RouteSynchronizer(store)

    sync.push(Filter(date(2024, 1, 1), date(2024, 12, 31)), MonthSelection(2024, 5, "maj 2024"), False)

    params = store.get_all()
    assert params["year"] == "2024"
    assert params["month"] == "5"


def test_push_is_noop_while_inbound() -> None:
    store = InMemoryQueryParams()
    sync = RouteSynchronizer(store)

    with sync.inbound():
        assert sync.syncing
        assert not sync.push(Filter(date(2024, 1, 1), date(2024, 1, 2)), None, False)

    assert not sync.syncing
    assert store.get_all() == {}
    assert len(store.history) == 1


def test_push_skips_identical_query() -> None:
    store = InMemoryQueryParams()
    sync = RouteSynchronizer(store)
    filters = Filter(date(2024, 1, 1), date(2024, 1, 2))

    assert sync.push(filters, None, False)
    assert not sync.push(filters, None, False)
    assert len(store.history) == 2


def test_parse_defaults_missing_params_to_current_year() -> None:
    sync = RouteSynchronizer(InMemoryQueryParams())

    filters, month = sync.parse({"year": "2024"}, can_filter_by_customer=True, today=TODAY)

    assert filters == Filter(date(2024, 1, 1), date(2024, 12, 31))
    assert month is None


def test_parse_month_requires_both_keys_and_valid_range() -> None:
    sync = RouteSynchronizer(InMemoryQueryParams())

    _, month = sync.parse({"year": "2024", "month": "6"}, False, today=TODAY)
    _, invalid = sync.parse({"year": "2024", "month": "13"}, False, today=TODAY)

    assert month == MonthSelection(2024, 6, "czerwiec 2024")
    assert invalid is None


def test_history_back_forward_notifies_listeners() -> None:
    store = InMemoryQueryParams({"dateFrom": "2024-01-01"})
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.update({"dateFrom": "2024-02-01"})
    assert store.back()
    assert store.forward()
    assert not store.forward()
    unsubscribe()
    store.back()

    assert seen == [{"dateFrom": "2024-02-01"}, {"dateFrom": "2024-01-01"}, {"dateFrom": "2024-02-01"}]
