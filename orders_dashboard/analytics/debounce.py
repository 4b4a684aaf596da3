# orders_dashboard/analytics/debounce.py
"""
Debounce helper for the asyncio event loop.

Each trigger() cancels the pending timer and schedules the callback again
after `delay` seconds, so only the last value of a burst is delivered.

A trigger() issued with no running loop (e.g. a role change reported from
plain sync code) is kept as deferred and scheduled by the next resume() or
wait() that runs inside a loop.

VERSION: 1.1.0
CHANGELOG:
- v1.1.0: trigger() outside a running loop defers instead of raising
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, delay: float, callback: Callable[[Any], None], name: str = 'debounce'):
        self.delay = delay
        self.name = name
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._settled: Optional[asyncio.Event] = None
        self._deferred: Optional[Tuple[Any]] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None or self._deferred is not None

    def trigger(self, value: Any):
        """(Re)schedule delivery of `value`."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._cancel_handle()
            if self._settled is not None:
                self._settled.set()
            self._deferred = (value,)
            logger.debug(f"[{self.name}] no running loop, call deferred")
            return

        self._deferred = None
        self._cancel_handle()
        if self._settled is None or self._settled.is_set():
            self._settled = asyncio.Event()
        self._handle = loop.call_later(self.delay, self._fire, value)

    def resume(self):
        """Schedule a deferred call. Must be called from the running loop."""
        if self._deferred is not None:
            (value,) = self._deferred
            self.trigger(value)

    def _fire(self, value: Any):
        self._handle = None
        try:
            self._callback(value)
        finally:
            if self._settled is not None:
                self._settled.set()

    def _cancel_handle(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def cancel(self):
        self._deferred = None
        if self._handle is not None:
            self._cancel_handle()
            logger.debug(f"[{self.name}] pending call cancelled")
        if self._settled is not None:
            self._settled.set()

    async def wait(self):
        """Wait until the pending call (if any) has fired or been cancelled."""
        self.resume()
        if self._settled is not None and not self._settled.is_set():
            await self._settled.wait()
