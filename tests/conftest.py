"""Shared fixtures: a clock the tests drive, and fake network calls."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest
from kungfu import LazyCoroResult

from steeped import lift as L
from steeped.cache import QueryCache
from steeped.cart import CartStore, CartPersistence, MemoryStorage
from steeped.fetch import FetchCoordinator, FetchError, FetchErrorKind
from steeped.pricing import Product, Variant


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 5, 1, 9, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class Boom(Exception):
    pass


async def drain(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next real suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def _slot(params: Any) -> Hashable:
    return params if isinstance(params, Hashable) else repr(params)


class FakeBackend:
    """
    Scripted network calls.

    `gate(key)` makes calls for that key wait until `release(key)`.
    """

    def __init__(self) -> None:
        self.calls: list[Any] = []
        self.cancelled: list[Any] = []
        self.responses: dict[Any, Any] = {}
        self.failures: dict[Any, Exception] = {}
        self._gates: dict[Any, list[asyncio.Event]] = {}

    def gate(self, params: Any) -> None:
        self._gates.setdefault(_slot(params), [])

    def release(self, params: Any, index: int = 0) -> None:
        self._gates[_slot(params)][index].set()

    async def call(self, params: Any) -> Any:
        self.calls.append(params)
        number = len(self.calls)
        slot = _slot(params)
        if slot in self._gates:
            event = asyncio.Event()
            self._gates[slot].append(event)
            try:
                await event.wait()
            except asyncio.CancelledError:
                self.cancelled.append(params)
                raise
        if slot in self.failures:
            raise self.failures[slot]
        return self.responses.get(slot, {"params": params, "call": number})

    def fetch_fn(self) -> Callable[[Any], LazyCoroResult[Any, FetchError]]:
        def fetch(params: Any) -> LazyCoroResult[Any, FetchError]:
            return L.from_awaitable(
                lambda: self.call(params),
                on_error=lambda e: FetchError(FetchErrorKind.NETWORK, str(e), cause=e),
            )

        return fetch


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> QueryCache:
    return QueryCache(clock=clock)


@pytest.fixture
def coordinator(cache: QueryCache) -> FetchCoordinator:
    return FetchCoordinator(cache)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cart(clock: FakeClock, storage: MemoryStorage) -> CartStore:
    return CartStore(clock=clock, tax_rate=10, persistence=CartPersistence(storage))


@pytest.fixture
def sencha() -> Product:
    return Product(
        id="sencha",
        name="Sencha",
        price=Decimal("100"),
        variants=(
            Variant(name="50g", price=Decimal("100")),
            Variant(name="100g", price=Decimal("180"), weight="100g"),
        ),
    )


@pytest.fixture
def oolong() -> Product:
    return Product(id="oolong", name="Oolong", price=Decimal("200"))
