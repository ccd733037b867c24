"""
Canonical serialization shared by cache keys and cart identity keys.

Two values that mean the same thing serialize to the same string regardless
of mapping insertion order.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Set
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import orjson


def normalize(value: Any) -> Any:
    """Reduce a value to JSON-native pieces with a stable shape."""
    match value:
        case None | bool() | int() | float() | str():
            return value
        case Decimal():
            return format(value.normalize(), "f")
        case Enum():
            return normalize(value.value)
        case datetime() | date():
            return value.isoformat()
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return normalize(
                {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            )
        case Mapping():
            return {
                str(k): normalize(v) for k, v in value.items() if v is not None
            }
        case Set():
            return sorted((normalize(v) for v in value), key=canonical_json)
        case list() | tuple():
            return [normalize(v) for v in value]
        case _:
            raise TypeError(f"Cannot canonicalize {type(value).__name__}")


def canonical_json(value: Any) -> str:
    """Sorted-key compact JSON of `normalize(value)`."""
    return orjson.dumps(normalize(value), option=orjson.OPT_SORT_KEYS).decode()


__all__ = ("normalize", "canonical_json")
