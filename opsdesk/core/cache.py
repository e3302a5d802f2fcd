"""
Explicit cache for computed dashboard views.

Entries are keyed by typed keys rather than free-form strings, and every
mutation that can change a cached view calls one of the invalidate_* methods
itself. Nothing is invalidated implicitly.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunnelRevenueKey:
    funnel_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ViewCache:
    def __init__(self):
        self._entries: Dict[FunnelRevenueKey, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: FunnelRevenueKey) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: FunnelRevenueKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def invalidate_funnel(self, funnel_id: int) -> int:
        """Drop every cached window of one funnel. Returns the number of entries removed."""
        with self._lock:
            stale = [k for k in self._entries if k.funnel_id == funnel_id]
            for k in stale:
                del self._entries[k]
        logger.debug(f"Invalidated {len(stale)} cached revenue entries for funnel ID: {funnel_id}")
        return len(stale)

    def invalidate_all_funnels(self) -> int:
        """Sale changes can move revenue for any funnel."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.debug(f"Invalidated all {removed} cached revenue entries")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


revenue_cache = ViewCache()
