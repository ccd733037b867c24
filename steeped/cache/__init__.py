"""
Cache — query results with per-resource freshness windows.

    from steeped import cache as C

    cache = C.QueryCache()
    cache.write(C.canonical_key(C.PRODUCTS, {"page": 1}), page, timedelta(seconds=60))
    result = cache.read(C.canonical_key(C.PRODUCTS, {"page": 1}))
"""

from __future__ import annotations

from steeped.cache._types import (
    PRODUCTS,
    PRODUCT,
    BESTSELLERS,
    FEATURED,
    CATEGORIES,
    SEARCH,
    NAMESPACES,
    namespace_of,
    CacheEntry,
    CacheMissKind,
    CacheMiss,
    CacheStats,
    Snapshot,
)
from steeped.cache._keys import canonical_key
from steeped.cache._store import QueryCache

__all__ = (
    "PRODUCTS",
    "PRODUCT",
    "BESTSELLERS",
    "FEATURED",
    "CATEGORIES",
    "SEARCH",
    "NAMESPACES",
    "namespace_of",
    "CacheEntry",
    "CacheMissKind",
    "CacheMiss",
    "CacheStats",
    "Snapshot",
    "canonical_key",
    "QueryCache",
)
