# orders_dashboard/analytics/route_sync.py
"""
Route Synchronizer for the Orders Analytics Dashboard

Keeps Filter / MonthSelection and the navigable query string convergent so
that reloading or sharing a URL reproduces the same view.

Directions:
- Model -> Route: push() merges the current model into the query string,
  removing keys whose value is None. Unrelated keys are left alone.
- Route -> Model: read()/parse() run raw parameters through the normalizer.
  The caller applies the result inside `with sync.inbound():`, and any push()
  issued while inbound is a no-op, so back/forward navigation never writes a
  new history entry.

Recognized keys: dateFrom, dateTo (YYYY-MM-DD), customerId (only with the
customer entitlement), year + month (only together, only with a selection).

VERSION: 1.2.0
CHANGELOG:
- v1.2.0: push() skips writes that would not change the query string
- v1.1.0: InMemoryQueryParams gained browser-like back()/forward() history
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple

from .constants import (
    DEFAULT_LOCALE,
    PARAM_CUSTOMER_ID,
    PARAM_DATE_FROM,
    PARAM_DATE_TO,
    PARAM_MONTH,
    PARAM_YEAR,
)
from .filters import normalize_filters, normalize_month_selection
from .models import Filter, MonthSelection

logger = logging.getLogger(__name__)

RouteListener = Callable[[Dict[str, str]], None]


# =============================================================================
# QUERY PARAMS STORES
# =============================================================================

class QueryParamsStore(Protocol):
    def get_all(self) -> Dict[str, str]: ...

    def update(self, params: Mapping[str, Optional[str]]) -> None: ...

    def subscribe(self, listener: RouteListener) -> Callable[[], None]: ...


class InMemoryQueryParams:
    """
    Query string with a browser-like history stack.

    update() behaves like an in-app navigation (new history entry, forward
    entries dropped); back()/forward()/navigate_external() behave like the
    user driving the browser. Every change is announced to subscribers.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._history: List[Dict[str, str]] = [dict(initial or {})]
        self._index = 0
        self._listeners: List[RouteListener] = []

    @property
    def history(self) -> List[Dict[str, str]]:
        return [dict(entry) for entry in self._history[: self._index + 1]]

    def get_all(self) -> Dict[str, str]:
        return dict(self._history[self._index])

    def update(self, params: Mapping[str, Optional[str]]):
        merged = self.get_all()
        for key, value in params.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = str(value)
        if merged == self._history[self._index]:
            return
        self._push(merged)

    def navigate_external(self, params: Mapping[str, str]):
        """Deep link / manual URL edit: replaces the whole query string."""
        self._push({key: str(value) for key, value in params.items()})

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        self._notify()
        return True

    def forward(self) -> bool:
        if self._index >= len(self._history) - 1:
            return False
        self._index += 1
        self._notify()
        return True

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _push(self, params: Dict[str, str]):
        del self._history[self._index + 1:]
        self._history.append(params)
        self._index += 1
        self._notify()

    def _notify(self):
        current = self.get_all()
        for listener in list(self._listeners):
            listener(dict(current))


# =============================================================================
# SYNCHRONIZER
# =============================================================================

class RouteSynchronizer:
    """
    Bidirectional bridge between the dashboard model and a QueryParamsStore.

    Usage:
        sync = RouteSynchronizer(InMemoryQueryParams({'dateFrom': '2024-01-01'}))
        filters, month = sync.read(can_filter_by_customer=False)
        sync.push(filters, month, can_filter_by_customer=False)
    """

    def __init__(self, store: QueryParamsStore, locale: str = DEFAULT_LOCALE):
        self.store = store
        self.locale = locale
        self._inbound_depth = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    # -------------------------------------------------------------------------
    # Reentrancy guard
    # -------------------------------------------------------------------------

    @property
    def syncing(self) -> bool:
        """True while a Route -> Model update is being applied."""
        return self._inbound_depth > 0

    @contextmanager
    def inbound(self) -> Iterator[None]:
        self._inbound_depth += 1
        try:
            yield
        finally:
            self._inbound_depth -= 1

    # -------------------------------------------------------------------------
    # Route -> Model
    # -------------------------------------------------------------------------

    def parse(
        self,
        params: Mapping[str, Optional[str]],
        can_filter_by_customer: bool,
        today: Optional[date] = None,
    ) -> Tuple[Filter, Optional[MonthSelection]]:
        """Missing or invalid dates default to the current calendar year."""
        filters = normalize_filters(
            {
                'dateFrom': params.get(PARAM_DATE_FROM),
                'dateTo': params.get(PARAM_DATE_TO),
                'customerId': params.get(PARAM_CUSTOMER_ID),
            },
            previous=None,
            can_filter_by_customer=can_filter_by_customer,
            today=today,
        )
        month = normalize_month_selection(
            params.get(PARAM_YEAR), params.get(PARAM_MONTH), locale=self.locale
        )
        return filters, month

    def read(
        self, can_filter_by_customer: bool, today: Optional[date] = None
    ) -> Tuple[Filter, Optional[MonthSelection]]:
        return self.parse(self.store.get_all(), can_filter_by_customer, today=today)

    # -------------------------------------------------------------------------
    # Model -> Route
    # -------------------------------------------------------------------------

    @staticmethod
    def encode(
        filters: Filter,
        month: Optional[MonthSelection],
        can_filter_by_customer: bool,
    ) -> Dict[str, Optional[str]]:
        """Route params for the model; None marks keys to remove."""
        customer_id = filters.customer_id if can_filter_by_customer else None
        return {
            PARAM_DATE_FROM: filters.date_from.isoformat(),
            PARAM_DATE_TO: filters.date_to.isoformat(),
            PARAM_CUSTOMER_ID: customer_id or None,
            PARAM_YEAR: str(month.year) if month else None,
            PARAM_MONTH: str(month.month) if month else None,
        }

    def push(
        self,
        filters: Filter,
        month: Optional[MonthSelection],
        can_filter_by_customer: bool,
    ) -> bool:
        """
        Write the model into the query string.

        Returns:
            True if the store was updated; False while syncing from the route
            or when the query string already matches.
        """
        if self.syncing:
            logger.debug("Route push suppressed: inbound sync in progress")
            return False

        params = self.encode(filters, month, can_filter_by_customer)
        current = self.store.get_all()
        if all(current.get(key) == value for key, value in params.items()):
            return False

        self.store.update(params)
        logger.debug(f"Route updated: {params}")
        return True

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def listen(self, callback: RouteListener):
        self.close()
        self._unsubscribe = self.store.subscribe(callback)

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
