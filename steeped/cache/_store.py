"""
QueryCache — namespaced store of server query results.

    cache = QueryCache(clock=clock)
    cache.write("products:page=1", page, timedelta(seconds=60))

    match cache.read("products:page=1"):
        case Ok(entry):
            render(entry.payload)
        case Error(miss):
            refetch()

Expiry is checked lazily at read time; there is no background sweep.

Writes are ordered by request issuance, not by arrival: every request takes a
number from `next_sequence()` before it goes out, and a write whose number is
older than what the slot already holds is dropped. Invalidation raises the
floor too, so a response to a request issued before `invalidate()` can never
repopulate the slot it cleared.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace
from datetime import timedelta
from typing import Any

from kungfu import Result, Ok, Error

from steeped._types import Clock, system_clock
from steeped.cache._types import (
    NAMESPACES,
    namespace_of,
    CacheEntry,
    CacheMiss,
    CacheMissKind,
    CacheStats,
    Snapshot,
)

logger = logging.getLogger(__name__)


class QueryCache:
    """
    Key → CacheEntry store, one bucket per namespace.

    Not thread-safe; meant to live on one event loop.
    """

    def __init__(
        self,
        *,
        clock: Clock = system_clock,
        namespaces: Iterable[str] = NAMESPACES,
    ) -> None:
        self._clock = clock
        self._buckets: dict[str, dict[str, CacheEntry[Any]]] = {ns: {} for ns in namespaces}
        self._floors: dict[str, int] = {}
        self._last_sequence = 0
        self.stats = CacheStats()

    # ─────────────────────────────────────────────────────────────────────────
    # Sequencing
    # ─────────────────────────────────────────────────────────────────────────

    def next_sequence(self) -> int:
        """Issue the next request number. Strictly increasing."""
        self._last_sequence += 1
        return self._last_sequence

    def _floor(self, key: str) -> int:
        return max(self._floors.get(key, 0), self._floors.get(namespace_of(key), 0))

    # ─────────────────────────────────────────────────────────────────────────
    # Read / Write
    # ─────────────────────────────────────────────────────────────────────────

    def read(self, key: str) -> Result[CacheEntry[Any], CacheMiss]:
        """Live entry for `key`, or the reason there is none."""
        bucket = self._buckets.get(namespace_of(key))
        entry = bucket.get(key) if bucket is not None else None

        if entry is None:
            self.stats.absent += 1
            logger.debug("cache miss (absent) %s", key)
            return Error(CacheMiss(key, CacheMissKind.ABSENT))

        if entry.is_expired(self._clock()):
            del bucket[key]  # type: ignore[index]
            self.stats.expired += 1
            logger.debug("cache miss (expired) %s", key)
            return Error(CacheMiss(key, CacheMissKind.EXPIRED))

        self.stats.hits += 1
        logger.debug("cache hit %s", key)
        return Ok(entry)

    def write(
        self,
        key: str,
        payload: Any,
        ttl: timedelta,
        *,
        sequence: int | None = None,
    ) -> bool:
        """
        Store `payload` under `key` for `ttl`.

        Without a sequence the write is treated as brand new. Returns False
        when the write lost to a newer request or an invalidation.
        """
        if sequence is None:
            sequence = self.next_sequence()

        bucket = self._buckets.setdefault(namespace_of(key), {})
        current = bucket.get(key)
        if sequence <= self._floor(key) or (current is not None and current.sequence > sequence):
            self.stats.rejected_writes += 1
            logger.debug("cache write rejected %s (sequence %d is stale)", key, sequence)
            return False

        now = self._clock()
        bucket[key] = CacheEntry(
            payload=payload,
            written_at=now,
            expires_at=now + ttl,
            sequence=sequence,
        )
        self.stats.writes += 1
        # Entry sequence supersedes the floor
        self._floors.pop(key, None)
        return True

    def peek(self, key: str) -> CacheEntry[Any] | None:
        """Live entry without touching stats. Expired entries read as None."""
        bucket = self._buckets.get(namespace_of(key))
        entry = bucket.get(key) if bucket is not None else None
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    def keys(self, namespace: str) -> Iterator[str]:
        """Keys currently held in `namespace`, expired or not."""
        return iter(tuple(self._buckets.get(namespace, ())))

    # ─────────────────────────────────────────────────────────────────────────
    # Invalidation
    # ─────────────────────────────────────────────────────────────────────────

    def invalidate(self, target: str) -> int:
        """
        Drop a whole namespace (when `target` names one) or a single key.

        Returns the number of entries dropped.
        """
        self._floors[target] = self._last_sequence

        if target in self._buckets:
            for key in [k for k in self._floors if k != target and namespace_of(k) == target]:
                del self._floors[key]
            bucket = self._buckets[target]
            dropped = len(bucket)
            bucket.clear()
            logger.debug("invalidated namespace %s (%d entries)", target, dropped)
            return dropped

        bucket = self._buckets.get(namespace_of(target))
        if bucket is not None and bucket.pop(target, None) is not None:
            logger.debug("invalidated %s", target)
            return 1
        return 0

    def clear(self) -> int:
        """Drop everything."""
        return sum(self.invalidate(ns) for ns in tuple(self._buckets))

    # ─────────────────────────────────────────────────────────────────────────
    # Optimistic Updates
    # ─────────────────────────────────────────────────────────────────────────

    def patch[T](self, key: str, update: Callable[[T], T]) -> Snapshot[T] | None:
        """
        Replace a live entry's payload with `update(payload)` in place.

        Expiry is kept; the entry takes a fresh sequence so responses already
        in flight cannot clobber the optimistic value. Returns the snapshot to
        hand to `restore()`, or None when there is nothing live to patch.
        """
        entry: CacheEntry[T] | None = self.peek(key)
        if entry is None:
            return None

        applied = replace(entry, payload=update(entry.payload), sequence=self.next_sequence())
        self._buckets[namespace_of(key)][key] = applied
        return Snapshot(key=key, previous=entry, applied_sequence=applied.sequence)

    def restore[T](self, snapshot: Snapshot[T]) -> bool:
        """
        Undo a patch.

        Only restores when the slot still holds exactly what the patch put
        there; a newer write or an invalidation in between wins.
        """
        bucket = self._buckets.get(namespace_of(snapshot.key))
        current = bucket.get(snapshot.key) if bucket is not None else None
        if current is None or current.sequence != snapshot.applied_sequence:
            return False
        bucket[snapshot.key] = snapshot.previous  # type: ignore[index]
        return True


__all__ = ("QueryCache",)
