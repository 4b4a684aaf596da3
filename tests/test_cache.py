"""Unit tests for the TTL cache and cache keys."""

from __future__ import annotations

import json
from datetime import date

import pytest

from orders_dashboard.analytics.cache import TTLCache, daily_cache_key, filters_cache_key
from orders_dashboard.analytics.models import Filter

pytestmark = pytest.mark.unit


def test_entry_alive_until_ttl_then_evicted(clock) -> None:
    """Written at T with ttl 90000: present at T+89999, gone at T+90001."""

    cache = TTLCache("kpi", clock=clock)
    cache.set("k", {"sum": 1}, ttl_ms=90_000)

    clock.advance(89_999)
    assert cache.get("k") == {"sum": 1}

    clock.advance(2)
    assert cache.get("k") is None
    assert "k" not in cache
    assert len(cache) == 0


def test_expired_entry_is_kept_until_read(clock) -> None:
    """Eviction is lazy: nothing happens without a read."""

    cache = TTLCache("trend", clock=clock)
    cache.set("a", [1], ttl_ms=10)
    clock.advance(1_000)

    assert "a" in cache
    assert cache.get("a") is None
    assert "a" not in cache


def test_set_overwrites_and_refreshes_expiry(clock) -> None:
    cache = TTLCache("daily", clock=clock)
    cache.set("a", 1, ttl_ms=100)
    clock.advance(90)
    cache.set("a", 2, ttl_ms=100)
    clock.advance(90)

    assert cache.get("a") == 2


def test_filters_key_is_deterministic() -> None:
    """Logically identical filters produce identical keys."""

    a = Filter(date_from=date(2024, 1, 1), date_to=date(2024, 3, 31), customer_id=None)
    b = Filter(customer_id=None, date_to=date(2024, 3, 31), date_from=date(2024, 1, 1))

    assert filters_cache_key(a) == filters_cache_key(b)
    assert json.loads(filters_cache_key(a)) == {
        "customer_id": None,
        "date_from": "2024-01-01",
        "date_to": "2024-03-31",
    }
    assert filters_cache_key(a) != filters_cache_key(Filter(date(2024, 1, 1), date(2024, 3, 31), "c1"))


def test_daily_key_shape() -> None:
    assert daily_cache_key(2024, 6) == "2024-6-all"
    assert daily_cache_key(2024, 6, "c1") == "2024-6-c1"
