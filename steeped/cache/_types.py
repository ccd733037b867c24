"""
Cache types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum, auto

# ═══════════════════════════════════════════════════════════════════════════════
# Namespaces — One Per Resource Class
# ═══════════════════════════════════════════════════════════════════════════════

PRODUCTS = "products"
PRODUCT = "product"
BESTSELLERS = "bestsellers"
FEATURED = "featured"
CATEGORIES = "categories"
SEARCH = "search"

NAMESPACES: tuple[str, ...] = (PRODUCTS, PRODUCT, BESTSELLERS, FEATURED, CATEGORIES, SEARCH)

SEPARATOR = ":"


def namespace_of(key: str) -> str:
    """`products:page=1` -> `products`; a bare `categories` is its own namespace."""
    return key.split(SEPARATOR, 1)[0]


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Entry
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheEntry[T]:
    """
    A cached payload with its freshness window.

    `sequence` is the issuance number of the request that produced the
    payload; writes carrying an older number are rejected.
    """

    payload: T
    written_at: datetime
    expires_at: datetime
    sequence: int

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def ttl_remaining(self, now: datetime) -> timedelta:
        return max(self.expires_at - now, timedelta(0))


# ═══════════════════════════════════════════════════════════════════════════════
# Miss
# ═══════════════════════════════════════════════════════════════════════════════


class CacheMissKind(Enum):
    """Why a read missed. Both kinds are plain misses to callers."""

    ABSENT = auto()
    EXPIRED = auto()


@dataclass(frozen=True, slots=True)
class CacheMiss:
    key: str
    kind: CacheMissKind


# ═══════════════════════════════════════════════════════════════════════════════
# Stats
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    absent: int = 0
    expired: int = 0
    writes: int = 0
    rejected_writes: int = 0

    @property
    def misses(self) -> int:
        return self.absent + self.expired


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot — For Optimistic Rollback
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Snapshot[T]:
    """The entry as it was before an optimistic patch."""

    key: str
    previous: CacheEntry[T]
    applied_sequence: int


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "PRODUCTS",
    "PRODUCT",
    "BESTSELLERS",
    "FEATURED",
    "CATEGORIES",
    "SEARCH",
    "NAMESPACES",
    "SEPARATOR",
    "namespace_of",
    "CacheEntry",
    "CacheMissKind",
    "CacheMiss",
    "CacheStats",
    "Snapshot",
)
