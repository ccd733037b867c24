"""
Fetch — cache-first resources over the network.

    from steeped import fetch as F

    coordinator = F.FetchCoordinator(cache)
    products = F.resource("products", fetch_products).ttl(seconds=60).build(coordinator)

    match await products.get({"page": 1}):
        case Ok(fetched):
            show(fetched.value, cached=fetched.from_cache)
        case Error(e) if e.user_visible:
            notify(e.message)
"""

from __future__ import annotations

from steeped.fetch._types import (
    FetchStatus,
    FetchErrorKind,
    FetchError,
    CANCELLED,
    Fetched,
    QueryState,
    IDLE,
    FetchFn,
    Call,
)
from steeped.fetch._coordinator import FetchCoordinator
from steeped.fetch._builder import KeyFn, DEFAULT_TTL, ResourceBuilder, Resource, resource

__all__ = (
    "FetchStatus",
    "FetchErrorKind",
    "FetchError",
    "CANCELLED",
    "Fetched",
    "QueryState",
    "IDLE",
    "FetchFn",
    "Call",
    "FetchCoordinator",
    "KeyFn",
    "DEFAULT_TTL",
    "ResourceBuilder",
    "Resource",
    "resource",
)
