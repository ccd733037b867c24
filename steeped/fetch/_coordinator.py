"""
FetchCoordinator — cache-first execution of outbound queries.

For one key:

    read cache ── hit ──────────────────────────────▶ Ok(Fetched(from_cache=True))
        │
       miss
        │
    pending call for key? ── yes ── join it ────────▶ its result
        │
        no
        │
    take sequence, start call ── Ok ── write(seq) ──▶ Ok(Fetched(from_cache=False))
                               └─ Error ────────────▶ Error (nothing cached)

Concurrent misses on the same key share one call (single-flight). A caller
that gets cancelled leaves the shared call running for the others; when the
last one leaves, the call is cancelled. `abort(key)` cancels the call for
everyone and answers Error(CANCELLED). Cancelled calls never write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any

from kungfu import Result, Ok, Error, LazyCoroResult

from steeped.cache import QueryCache, Snapshot, namespace_of
from steeped.fetch._types import (
    FetchStatus,
    FetchError,
    FetchErrorKind,
    CANCELLED,
    Fetched,
    QueryState,
    IDLE,
    Call,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# In-Flight Call
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, eq=False)
class _Flight:
    sequence: int
    previous: QueryState[Any]
    task: asyncio.Task[Result[Any, FetchError]] | None = None
    waiters: int = field(default=0)


def _caller_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


# ═══════════════════════════════════════════════════════════════════════════════
# FetchCoordinator
# ═══════════════════════════════════════════════════════════════════════════════


class FetchCoordinator:
    """
    Owns the pending-call map and the per-key query state.

    One per session, next to the QueryCache it fills.
    """

    def __init__(self, cache: QueryCache) -> None:
        self.cache = cache
        self._pending: dict[str, _Flight] = {}  # joinable calls
        self._latest: dict[str, _Flight] = {}  # newest call per key, owns the state
        self._states: dict[str, QueryState[Any]] = {}

    # ─────────────────────────────────────────────────────────────────────────
    # Fetch
    # ─────────────────────────────────────────────────────────────────────────

    async def fetch[T](
        self,
        key: str,
        ttl: timedelta,
        call: Call[T],
        *,
        force: bool = False,
    ) -> Result[Fetched[T], FetchError]:
        """
        Resolve `key` from cache or network.

        `force` skips both the cache and any pending call and always issues a
        new request; its newer sequence wins over older ones still in flight.
        """
        if not force:
            match self.cache.read(key):
                case Ok(entry):
                    self._states[key] = QueryState(
                        status=FetchStatus.FULFILLED,
                        payload=entry.payload,
                        is_from_cache=True,
                    )
                    return Ok(Fetched(entry.payload, from_cache=True, key=key))
                case Error(_):
                    pass

        flight = None if force else self._pending.get(key)
        if flight is None:
            flight = self._start(key, ttl, call)
        else:
            logger.debug("joining in-flight request for %s", key)

        match await self._wait(flight):
            case Ok(value):
                return Ok(Fetched(value, from_cache=False, key=key))
            case Error(e):
                return Error(e)

    def _start[T](self, key: str, ttl: timedelta, call: Call[T]) -> _Flight:
        previous = self._states.get(key, IDLE)
        flight = _Flight(sequence=self.cache.next_sequence(), previous=previous)
        flight.task = asyncio.ensure_future(self._run(key, ttl, call, flight.sequence))
        flight.task.add_done_callback(lambda task: self._settle(key, flight, task))

        self._pending[key] = flight
        self._latest[key] = flight
        self._states[key] = replace(previous, status=FetchStatus.PENDING, error=None)
        logger.debug("fetching %s (sequence %d)", key, flight.sequence)
        return flight

    async def _run[T](
        self,
        key: str,
        ttl: timedelta,
        call: Call[T],
        sequence: int,
    ) -> Result[T, FetchError]:
        try:
            result = await call()
        except Exception as e:
            result = Error(FetchError(FetchErrorKind.NETWORK, str(e), cause=e))

        match result:
            case Ok(value):
                self.cache.write(key, value, ttl, sequence=sequence)
            case Error(e):
                logger.debug("fetch %s failed: %s", key, e.message)
        return result

    async def _wait(self, flight: _Flight) -> Result[Any, FetchError]:
        assert flight.task is not None
        flight.waiters += 1
        try:
            result = await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            flight.waiters -= 1
            if _caller_cancelled():
                if flight.waiters == 0:
                    flight.task.cancel()
                raise
            return Error(CANCELLED)
        flight.waiters -= 1
        return result

    def _settle(
        self,
        key: str,
        flight: _Flight,
        task: asyncio.Task[Result[Any, FetchError]],
    ) -> None:
        if self._pending.get(key) is flight:
            del self._pending[key]
        # Only the newest call for a key owns its state
        if self._latest.get(key) is not flight:
            return
        del self._latest[key]

        if task.cancelled():
            logger.debug("fetch %s aborted", key)
            self._states[key] = flight.previous
            return

        match task.result():
            case Ok(value):
                self._states[key] = QueryState(status=FetchStatus.FULFILLED, payload=value)
            case Error(e):
                self._states[key] = QueryState(
                    status=FetchStatus.REJECTED,
                    payload=flight.previous.payload,
                    error=e,
                )

    # ─────────────────────────────────────────────────────────────────────────
    # Control
    # ─────────────────────────────────────────────────────────────────────────

    def abort(self, key: str) -> bool:
        """Cancel the in-flight call for `key`. Returns False if there was none."""
        flight = self._latest.get(key)
        if flight is None or flight.task is None or flight.task.done():
            return False
        flight.task.cancel()
        return True

    def is_pending(self, key: str) -> bool:
        return key in self._latest

    def state(self, key: str) -> QueryState[Any]:
        return self._states.get(key, IDLE)

    def invalidate(self, target: str) -> int:
        """
        Drop cached entries for a key or namespace.

        Calls already in flight for those keys keep running for their current
        waiters, but new callers start fresh and the old results are not cached.
        Settled keys go back to IDLE.
        """
        for key in tuple(self._pending):
            if key == target or namespace_of(key) == target:
                del self._pending[key]
        for key in tuple(self._states):
            if (key == target or namespace_of(key) == target) and key not in self._latest:
                del self._states[key]
        return self.cache.invalidate(target)

    # ─────────────────────────────────────────────────────────────────────────
    # Optimistic Updates
    # ─────────────────────────────────────────────────────────────────────────

    async def optimistic[T](
        self,
        patches: Iterable[tuple[str, Callable[[Any], Any]]],
        confirm: LazyCoroResult[T, FetchError],
    ) -> Result[T, FetchError]:
        """
        Apply cache patches now, confirm with the server, undo on failure.

        Patches are rolled back in reverse order, the way saga compensators
        unwind. A key that was rewritten in the meantime keeps the newer value.
        """
        snapshots: list[Snapshot[Any]] = []
        for key, update in patches:
            snapshot = self.cache.patch(key, update)
            if snapshot is None:
                continue
            snapshots.append(snapshot)
            self._refresh_state(key)

        try:
            result = await confirm
        except asyncio.CancelledError:
            self._rollback(snapshots)
            raise

        match result:
            case Ok(value):
                return Ok(value)
            case Error(e):
                restored = self._rollback(snapshots)
                logger.warning(
                    "optimistic update rolled back (%d of %d entries): %s",
                    restored,
                    len(snapshots),
                    e.message,
                )
                return Error(e)

    def _rollback(self, snapshots: list[Snapshot[Any]]) -> int:
        restored = 0
        for snapshot in reversed(snapshots):
            if self.cache.restore(snapshot):
                restored += 1
                self._refresh_state(snapshot.key)
        return restored

    def _refresh_state(self, key: str) -> None:
        state = self._states.get(key)
        entry = self.cache.peek(key)
        if state is not None and entry is not None:
            self._states[key] = replace(state, payload=entry.payload)


__all__ = ("FetchCoordinator",)
