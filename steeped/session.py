"""
Session — one explicitly constructed handle per client session.

Nothing in steeped is a module-level singleton: the cart, the query cache and
the coordinator live on a Session, and tests build as many as they like.

    async with open_session() as session:
        session.cart.add(product, quantity=2)
        page = await session.storefront.products.get(ListingQuery(page=1))
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from steeped._types import Clock, system_clock
from steeped.api import StorefrontApi
from steeped.cache import QueryCache
from steeped.cart import (
    CartPersistence,
    CartStore,
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
)
from steeped.config import Settings, get_settings
from steeped.fetch import FetchCoordinator
from steeped.storefront import Storefront

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Session:
    settings: Settings
    cart: CartStore
    cache: QueryCache
    coordinator: FetchCoordinator
    storefront: Storefront
    owns_api: bool = False

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        api: StorefrontApi | None = None,
        storage: KeyValueStorage | None = None,
        clock: Clock = system_clock,
    ) -> Session:
        """
        Wire a session.

        The cart is restored from `storage` (or the configured cart directory,
        or memory); the query cache always starts empty.
        """
        settings = settings or get_settings()
        if storage is None:
            storage = (
                FileStorage(settings.cart_storage_dir)
                if settings.cart_storage_dir is not None
                else MemoryStorage()
            )
        owns_api = api is None
        if api is None:
            api = StorefrontApi.from_settings(settings)

        persistence = CartPersistence(storage, key=settings.cart_storage_key)
        cart = CartStore.restored(persistence, clock=clock, tax_rate=settings.tax_rate)
        cache = QueryCache(clock=clock)
        coordinator = FetchCoordinator(cache)
        storefront = Storefront(api, coordinator, settings.ttl)

        logger.info("session opened against %s", settings.api_url)
        return cls(
            settings=settings,
            cart=cart,
            cache=cache,
            coordinator=coordinator,
            storefront=storefront,
            owns_api=owns_api,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this session created it; an injected one stays open."""
        if self.owns_api:
            await self.storefront.api.aclose()
        logger.info("session closed")


@asynccontextmanager
async def open_session(
    settings: Settings | None = None,
    *,
    api: StorefrontApi | None = None,
    storage: KeyValueStorage | None = None,
    clock: Clock = system_clock,
) -> AsyncIterator[Session]:
    session = Session.create(settings, api=api, storage=storage, clock=clock)
    try:
        yield session
    finally:
        await session.aclose()


__all__ = ("Session", "open_session")
