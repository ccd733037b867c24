"""
Cache keys — canonical serialization of query parameters.

    canonical_key("products", {"page": 1, "sort": "price"})  # products:page=1&sort=price
    canonical_key("products", {"sort": "price", "page": 1})  # same slot
    canonical_key("product", "64f0c2")                       # product:64f0c2
    canonical_key("categories")                              # categories

Values are rendered the way they travel in a query string, so `1` and `"1"`
land in the same slot. `None` parameters are dropped, as they never reach
the wire. Names and values are percent-encoded, so `&` or `=` inside a value
cannot forge another query's key:

    canonical_key("products", {"search": "green&sort=price"})  # products:search=green%26sort%3Dprice
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any
from urllib.parse import quote

from steeped._canonical import canonical_json, normalize
from steeped.cache._types import SEPARATOR


def _encode(text: str) -> str:
    return quote(text, safe="")


def _scalar(value: Any) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case int() | float():
            return str(value)
        case Decimal():
            return format(value.normalize(), "f")
        case Enum():
            return _scalar(value.value)
        case _:
            return canonical_json(value)


def canonical_key(namespace: str, params: Any = None) -> str:
    """Stable cache key for `params` under `namespace`."""
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        params = normalize(params)
    match params:
        case None:
            return namespace
        case Mapping():
            parts = sorted(
                (_encode(str(k)), _encode(_scalar(v))) for k, v in params.items() if v is not None
            )
            if not parts:
                return namespace
            query = "&".join(f"{k}={v}" for k, v in parts)
            return f"{namespace}{SEPARATOR}{query}"
        case _:
            return f"{namespace}{SEPARATOR}{_encode(_scalar(params))}"


__all__ = ("canonical_key",)
