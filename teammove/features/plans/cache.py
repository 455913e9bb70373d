"""
Per-company PlanData cache.

Entries expire after PLAN_CACHE_TTL_SECONDS and are dropped explicitly on
every plan change, so a stale tier is served for at most one TTL only when
the change happened in another process.
"""
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from teammove.core.config import settings
from teammove.models.plan import PlanData


_clock: Callable[[], float] = time.monotonic
_entries: Dict[str, Tuple[float, PlanData]] = {}
_lock = threading.Lock()


def set_clock_for_tests(clock: Optional[Callable[[], float]]) -> None:
    """Swap the monotonic clock (None restores it) and clear the cache."""
    global _clock
    _clock = clock or time.monotonic
    clear_plan_cache()


def get_cached_plan(company_id: str) -> Optional[PlanData]:
    with _lock:
        entry = _entries.get(company_id)
        if entry is None:
            return None
        expires_at, plan_data = entry
        if _clock() >= expires_at:
            del _entries[company_id]
            return None
        return plan_data


def set_cached_plan(company_id: str, plan_data: PlanData, ttl_seconds: Optional[int] = None) -> None:
    ttl = settings.PLAN_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    if ttl <= 0:
        return
    with _lock:
        _entries[company_id] = (_clock() + ttl, plan_data)


def invalidate_plan(company_id: str) -> None:
    with _lock:
        _entries.pop(company_id, None)


def clear_plan_cache() -> None:
    with _lock:
        _entries.clear()
