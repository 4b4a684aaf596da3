# orders_dashboard/analytics/access_control.py
"""
Access Control for the Orders Analytics Dashboard

Handles the single entitlement the dashboard cares about: may the acting
user filter analytics by customer (roles: editor, owner).

The entitlement is observable: when roles change (re-login, role revoked),
subscribers are notified so the dashboard can strip the customer filter.

VERSION: 1.1.0
"""

import logging
from typing import Callable, Iterable, List, Optional

from .constants import CUSTOMER_FILTER_ROLES

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class AccessControl:
    """
    Role-based entitlement source.

    Usage:
        access = AccessControl(['viewer'])
        unsubscribe = access.subscribe(on_change)
        access.set_roles(['owner'])  # on_change(True)
    """

    def __init__(self, roles: Optional[Iterable[str]] = None):
        """
        Initialize access control.

        Args:
            roles: Current user's roles (None/empty for anonymous)
        """
        self._roles: List[str] = list(roles or [])
        self._listeners: List[Listener] = []

    @property
    def roles(self) -> List[str]:
        return list(self._roles)

    def can_filter_by_customer(self) -> bool:
        """Check if user may filter analytics by customer."""
        return any(role in CUSTOMER_FILTER_ROLES for role in self._roles)

    def set_roles(self, roles: Optional[Iterable[str]]):
        """Replace the user's roles and notify subscribers if the entitlement changed."""
        before = self.can_filter_by_customer()
        self._roles = list(roles or [])
        after = self.can_filter_by_customer()

        if before != after:
            logger.info(f"Customer filter entitlement changed: {before} -> {after}")
            for listener in list(self._listeners):
                listener(after)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __repr__(self) -> str:
        return f"AccessControl(roles={self._roles}, customer_filter={self.can_filter_by_customer()})"
