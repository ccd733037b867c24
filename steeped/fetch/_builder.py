"""
Resource builder — fluent API.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from kungfu import LazyCoroResult, Result

from steeped.cache import canonical_key
from steeped.fetch._types import FetchFn, FetchError, Fetched, QueryState
from steeped.fetch._coordinator import FetchCoordinator

# ═══════════════════════════════════════════════════════════════════════════════
# Key Function Type
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn[P] = Callable[[str, P], str]

DEFAULT_TTL = timedelta(seconds=60)


# ═══════════════════════════════════════════════════════════════════════════════
# Resource Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class ResourceBuilder[P, T]:
    """
    Fluent resource builder.

    Type parameters:
        P: Query parameters
        T: Payload type

    Example:
        product = (
            F.resource("product", fetch_product)
            .ttl(minutes=5)
            .build(coordinator)
        )
    """

    _namespace: str
    _fetch: FetchFn[P, T]
    _ttl: timedelta
    _key_fn: KeyFn[P]

    def ttl(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        delta: timedelta | None = None,
    ) -> ResourceBuilder[P, T]:
        """
        Set the freshness window.

        Example:
            .ttl(seconds=60)
            .ttl(delta=settings.ttl.for_namespace("categories"))
        """
        if delta is None:
            delta = timedelta(seconds=(seconds or 0) + (minutes or 0) * 60)
        if delta <= timedelta(0):
            raise ValueError("ttl must be positive")
        return ResourceBuilder(
            _namespace=self._namespace,
            _fetch=self._fetch,
            _ttl=delta,
            _key_fn=self._key_fn,
        )

    def key(self, key_fn: KeyFn[P]) -> ResourceBuilder[P, T]:
        """Override the default `canonical_key(namespace, params)`."""
        return ResourceBuilder(
            _namespace=self._namespace,
            _fetch=self._fetch,
            _ttl=self._ttl,
            _key_fn=key_fn,
        )

    def build(self, coordinator: FetchCoordinator) -> Resource[P, T]:
        """Bind to a coordinator."""
        return Resource(
            namespace=self._namespace,
            fetch_fn=self._fetch,
            ttl=self._ttl,
            key_fn=self._key_fn,
            coordinator=coordinator,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Resource — Bound Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Resource[P, T]:
    """One resource class with cache-first reads."""

    namespace: str
    fetch_fn: FetchFn[P, T]
    ttl: timedelta
    key_fn: KeyFn[P]
    coordinator: FetchCoordinator

    def key(self, params: P | None = None) -> str:
        return self.key_fn(self.namespace, params)  # type: ignore[arg-type]

    def get(self, params: P | None = None) -> LazyCoroResult[Fetched[T], FetchError]:
        """
        Cache-first read.

        Tries the cache, then joins or starts the network call.
        On success the payload is written back with this resource's TTL.
        """
        return self._execute(params, force=False)

    def refetch(self, params: P | None = None) -> LazyCoroResult[Fetched[T], FetchError]:
        """Skip the cache and any pending call; always hit the network."""
        return self._execute(params, force=True)

    def _execute(self, params: P | None, *, force: bool) -> LazyCoroResult[Fetched[T], FetchError]:
        key = self.key(params)
        fetch_fn = self.fetch_fn
        coordinator = self.coordinator
        ttl = self.ttl

        async def execute() -> Result[Fetched[T], FetchError]:
            return await coordinator.fetch(
                key,
                ttl,
                lambda: fetch_fn(params),  # type: ignore[arg-type]
                force=force,
            )

        return LazyCoroResult(execute)

    def abort(self, params: P | None = None) -> bool:
        return self.coordinator.abort(self.key(params))

    def state(self, params: P | None = None) -> QueryState[T]:
        return self.coordinator.state(self.key(params))

    def peek(self, params: P | None = None) -> T | None:
        """Cached payload if fresh, without counting a read."""
        entry = self.coordinator.cache.peek(self.key(params))
        return entry.payload if entry is not None else None

    def invalidate(self, params: P | None = None, *, everything: bool = False) -> int:
        """Drop one cached key, or the whole namespace with `everything=True`."""
        target = self.namespace if everything else self.key(params)
        return self.coordinator.invalidate(target)

    async def optimistic[R](
        self,
        params: P | None,
        update: Callable[[T], T],
        confirm: LazyCoroResult[R, FetchError],
    ) -> Result[R, FetchError]:
        """
        Patch this key's cached payload, then confirm with the server.

        The patch is undone if `confirm` fails or is cancelled.
        """
        return await self.coordinator.optimistic([(self.key(params), update)], confirm)


# ═══════════════════════════════════════════════════════════════════════════════
# resource() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def _default_key(namespace: str, params: Any) -> str:
    return canonical_key(namespace, params)


def resource[P, T](namespace: str, fetch: FetchFn[P, T]) -> ResourceBuilder[P, T]:
    """
    Create a resource builder for `namespace` backed by `fetch`.

    Example:
        from steeped import fetch as F

        def fetch_product(product_id: str) -> LazyCoroResult[Document, FetchError]:
            return call_api(lambda: api.get_product(product_id), field="product")

        product = F.resource("product", fetch_product).ttl(minutes=5).build(coordinator)
        result = await product.get("64f0c2")
    """
    return ResourceBuilder(
        _namespace=namespace,
        _fetch=fetch,
        _ttl=DEFAULT_TTL,
        _key_fn=_default_key,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("KeyFn", "DEFAULT_TTL", "ResourceBuilder", "Resource", "resource")
