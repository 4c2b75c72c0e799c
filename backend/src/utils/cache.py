"""Caching utilities for drying status computations."""

import hashlib
import json
import os
import threading
from functools import wraps
from typing import Callable

from cachetools import TTLCache

from models.route import ClimbingRoute
from models.weather import WeatherContext

# TTL in seconds for memoized drying statuses
CACHE_TTL_SECONDS = int(os.environ.get("DRYING_STATUS_CACHE_TTL", "300"))
# Sized for a full batch across many areas
_drying_status_cache: TTLCache = TTLCache(maxsize=5000, ttl=CACHE_TTL_SECONDS)
_cache_lock = threading.Lock()


def get_cache_key(*args, **kwargs) -> str:
    """Generate a cache key from function arguments."""
    key_data = json.dumps({"args": args, "kwargs": kwargs}, sort_keys=True, default=str)
    # MD5 is used here only for cache key generation, not for security purposes
    return hashlib.md5(key_data.encode(), usedforsecurity=False).hexdigest()


def drying_status_cache_key(
    route: ClimbingRoute, context: WeatherContext, namespace: str = ""
) -> str:
    """Cache key covering every input a route's status depends on.

    ``namespace`` identifies the calculator configuration, so calculators with
    different thresholds or curves never share entries.
    """
    snapshot = context.snapshot_for(route.area_id)
    return get_cache_key(
        namespace,
        route.model_dump(mode="json"),
        snapshot.model_dump(mode="json") if snapshot is not None else None,
        context.tree_coverage_for(route.route_id, route.area_id),
        context.as_of.isoformat(),
    )


def cached_drying_status(func: Callable, namespace: str = "") -> Callable:
    """Cache decorator for ``func(route, context)`` drying status calls."""

    @wraps(func)
    def wrapper(route: ClimbingRoute, context: WeatherContext):
        cache_key = drying_status_cache_key(route, context, namespace)
        with _cache_lock:
            if cache_key in _drying_status_cache:
                return _drying_status_cache[cache_key]
        result = func(route, context)
        with _cache_lock:
            _drying_status_cache[cache_key] = result
        return result

    return wrapper


def get_drying_status_cache() -> TTLCache:
    """Get the drying status cache for direct access."""
    return _drying_status_cache


def clear_all_caches() -> None:
    """Clear all caches. Useful for testing."""
    with _cache_lock:
        _drying_status_cache.clear()
