from decimal import Decimal

import httpx

from steeped import Session, open_session
from steeped.api import StorefrontApi
from steeped.cart import CartPersistence, CartStore, MemoryStorage
from steeped.config import Settings
from steeped.storefront import ListingQuery


def make_api(hits: list[str]) -> StorefrontApi:
    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request.url.path)
        return httpx.Response(200, json={"success": True, "products": []})

    return StorefrontApi(
        httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://shop.test/api")
    )


async def test_session_restores_cart_not_cache(clock, sencha):
    storage = MemoryStorage()
    settings = Settings(tax_rate=Decimal("5"))
    CartStore(clock=clock, persistence=CartPersistence(storage)).add(sencha, quantity=2)

    hits: list[str] = []
    first = Session.create(settings, api=make_api(hits), storage=storage, clock=clock)
    await first.storefront.products.get(ListingQuery())
    await first.aclose()

    second = Session.create(settings, api=make_api(hits), storage=storage, clock=clock)
    assert second.cart.item_count() == 2
    assert second.cart.tax() == Decimal("10.00")
    assert second.cache.peek(second.storefront.products.key(ListingQuery())) is None

    await second.storefront.products.get(ListingQuery())
    assert hits == ["/api/products", "/api/products"]
    await second.aclose()


async def test_sessions_are_independent(clock, sencha):
    settings = Settings()
    a = Session.create(settings, api=make_api([]), clock=clock)
    b = Session.create(settings, api=make_api([]), clock=clock)

    a.cart.add(sencha)
    assert b.cart.item_count() == 0
    assert a.cache is not b.cache


async def test_file_storage_from_settings(tmp_path, clock, sencha):
    settings = Settings(cart_storage_dir=tmp_path, cart_storage_key="guest")

    async with open_session(settings, api=make_api([]), clock=clock) as session:
        session.cart.add(sencha)

    assert (tmp_path / "guest.json").exists()


async def test_injected_client_stays_open(clock):
    api = make_api([])
    async with open_session(Settings(), api=api, clock=clock):
        pass

    assert not api._client.is_closed
    await api.aclose()


async def test_session_closes_client_it_built(clock):
    async with open_session(Settings(), clock=clock) as session:
        assert session.owns_api

    assert session.storefront.api._client.is_closed
