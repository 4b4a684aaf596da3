"""Unit tests for the asyncio debounce helper."""

from __future__ import annotations

import asyncio

import pytest

from orders_dashboard.analytics.debounce import Debouncer

pytestmark = pytest.mark.unit


def test_burst_delivers_last_value_once() -> None:
    delivered = []
    debouncer = Debouncer(0.005, delivered.append, name="test")

    async def scenario():
        for value in (1, 2, 3):
            debouncer.trigger(value)
        await debouncer.wait()

    asyncio.run(scenario())

    assert delivered == [3]
    assert not debouncer.pending


def test_trigger_without_loop_is_deferred_until_wait() -> None:
    delivered = []
    debouncer = Debouncer(0.005, delivered.append, name="test")

    debouncer.trigger("late")

    assert debouncer.pending
    assert delivered == []

    asyncio.run(debouncer.wait())

    assert delivered == ["late"]
    assert not debouncer.pending


def test_cancel_drops_deferred_call() -> None:
    delivered = []
    debouncer = Debouncer(0.005, delivered.append, name="test")

    debouncer.trigger("dropped")
    debouncer.cancel()
    asyncio.run(debouncer.wait())

    assert delivered == []
    assert not debouncer.pending
