# orders_dashboard/analytics/cache.py
"""
TTL cache for remote analytics series

One TTLCache per series kind (KPI, Trend, Daily) because their key shapes
differ. Entries are checked for expiry on read and evicted lazily; there is
no background sweep.

VERSION: 1.1.0
CHANGELOG:
- v1.1.0: Injectable millisecond clock (tests drive expiry deterministically)
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from .models import Filter

logger = logging.getLogger(__name__)

T = TypeVar('T')

Clock = Callable[[], float]


def now_ms() -> float:
    """Wall clock in milliseconds."""
    return time.time() * 1000


@dataclass
class CacheEntry(Generic[T]):
    data: T
    expires_at: float


class TTLCache(Generic[T]):
    """
    Key -> value store with per-entry expiry.

    Usage:
        cache = TTLCache('kpi')
        cache.set(filters_cache_key(filters), kpi, ttl_ms=90_000)
        cached = cache.get(filters_cache_key(filters))  # None when missing/expired
    """

    def __init__(self, name: str, clock: Optional[Clock] = None):
        self.name = name
        self._clock = clock or now_ms
        self._entries: Dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if missing or expired (evicting it)."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.expires_at < self._clock():
            del self._entries[key]
            logger.debug(f"[{self.name}] cache expired: {key}")
            return None

        return entry.data

    def set(self, key: str, value: T, ttl_ms: int):
        self._entries[key] = CacheEntry(data=value, expires_at=self._clock() + ttl_ms)

    def clear(self):
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        # Raw membership; does not evict
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TTLCache(name={self.name}, entries={len(self._entries)})"


# =============================================================================
# CACHE KEYS
# =============================================================================

def filters_cache_key(filters: Filter) -> str:
    """Stable JSON of the normalized filters (sorted keys, ISO dates)."""
    return json.dumps(filters.to_dict(), sort_keys=True, separators=(',', ':'))


def daily_cache_key(year: int, month: int, customer_id: Optional[str] = None) -> str:
    return f"{year}-{month}-{customer_id or 'all'}"
