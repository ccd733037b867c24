import asyncio
from collections import Counter

import httpx
import pytest
from kungfu import Ok, Error

from steeped import fetch as F
from steeped import lift as L
from steeped.api import ApiResponse, StorefrontApi
from steeped.config import TTLSettings
from steeped.fetch import FetchErrorKind
from steeped.storefront import ListingQuery, Storefront, unwrap

from tests.conftest import drain

SENCHA = {"_id": "a1", "name": "Sencha", "price": 12}
OOLONG = {"_id": "b2", "name": "Oolong", "price": 18}


class Shop:
    """Canned storefront API that counts requests per path."""

    def __init__(self) -> None:
        self.hits: Counter[str] = Counter()
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        self.hits[path] += 1
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        match path:
            case "/products":
                page = int(request.url.params.get("page", 1))
                return httpx.Response(
                    200,
                    json={"success": True, "products": [SENCHA, OOLONG], "page": page, "totalPages": 1},
                )
            case "/products/bestsellers" | "/products/featured":
                return httpx.Response(200, json={"success": True, "products": [OOLONG]})
            case "/products/search":
                return httpx.Response(200, json={"success": True, "products": [SENCHA]})
            case "/categories":
                return httpx.Response(200, json={"success": True, "categories": [{"name": "Green"}]})
            case "/products/a1":
                return httpx.Response(200, json={"success": True, "product": SENCHA})
            case "/products/locked":
                return httpx.Response(200, json={"success": False, "message": "Product hidden"})
            case _:
                return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture
def shop() -> Shop:
    return Shop()


@pytest.fixture
def storefront(shop, coordinator) -> Storefront:
    client = httpx.AsyncClient(transport=httpx.MockTransport(shop), base_url="http://shop.test/api")
    return Storefront(StorefrontApi(client), coordinator, TTLSettings())


class TestResources:
    async def test_listing_cached_per_query(self, storefront, shop):
        await storefront.products.get(ListingQuery(page=1))
        again = await storefront.products.get({"limit": 12, "page": 1})
        await storefront.products.get(ListingQuery(page=2))

        assert again.unwrap().from_cache
        assert again.unwrap().key == "products:limit=12&page=1"
        assert shop.hits["/products"] == 2

    async def test_listing_search_text_cannot_alias_sort(self, storefront, shop):
        await storefront.products.get(ListingQuery(search="green", sort="price"))
        forged = await storefront.products.get(ListingQuery(search="green&sort=price"))

        assert forged.unwrap().from_cache is False
        assert shop.hits["/products"] == 2

    async def test_default_listing(self, storefront):
        result = await storefront.products.get()
        assert result.unwrap().key == storefront.products.key(ListingQuery())

    async def test_product_unwraps_document(self, storefront):
        result = await storefront.product.get("a1")
        assert result.unwrap().value == SENCHA

    async def test_lists(self, storefront):
        assert (await storefront.best_sellers.get()).unwrap().value == [OOLONG]
        assert (await storefront.featured.get()).unwrap().value == [OOLONG]
        assert (await storefront.categories.get()).unwrap().value == [{"name": "Green"}]

    async def test_ttl_per_resource(self, storefront, shop, clock):
        await storefront.categories.get()
        await storefront.search("sencha")

        clock.advance(31)
        await storefront.categories.get()
        await storefront.search("sencha")

        assert shop.hits["/categories"] == 1
        assert shop.hits["/products/search"] == 2

    async def test_success_false_is_api_error(self, storefront, cache):
        match await storefront.product.get("locked"):
            case Error(e):
                assert e.kind is FetchErrorKind.API
                assert e.message == "Product hidden"
            case Ok(_):
                pytest.fail("expected an error")
        assert cache.peek(storefront.product.key("locked")) is None

    async def test_http_error_is_api_error(self, storefront):
        error = (await storefront.product.get("zzz")).unwrap_err()
        assert error.kind is FetchErrorKind.API
        assert error.status == 404
        assert error.message == "Not found"

    async def test_transport_error_is_network_error(self, storefront, shop):
        shop.down = True
        error = (await storefront.categories.get()).unwrap_err()
        assert error.kind is FetchErrorKind.NETWORK
        assert error.user_visible

    async def test_missing_product_id(self, storefront, shop):
        error = (await storefront.product.get("")).unwrap_err()
        assert error.kind is FetchErrorKind.API
        assert sum(shop.hits.values()) == 0


class TestSearch:
    @pytest.mark.parametrize("term", ["", "s", "  a  "])
    async def test_short_terms_skip_network(self, storefront, shop, cache, term):
        result = (await storefront.search(term)).unwrap()

        assert result.value == []
        assert not result.from_cache
        assert shop.hits["/products/search"] == 0
        assert cache.stats.misses == 0

    async def test_term_is_trimmed(self, storefront, shop):
        await storefront.search("sencha")
        again = await storefront.search("  sencha ")

        assert again.unwrap().from_cache
        assert shop.hits["/products/search"] == 1

    async def test_abort_search(self, storefront, coordinator):
        release = asyncio.Event()

        async def slow(term: str):
            await release.wait()
            return ApiResponse(success=True, data={"products": []})

        storefront.api.search = slow
        pending = asyncio.create_task(storefront.search("matcha")())
        await drain()

        assert storefront.abort_search(" matcha ")
        assert (await pending) == Error(F.CANCELLED)


class TestUnwrap:
    def test_field(self):
        assert unwrap(ApiResponse(True, {"success": True, "product": SENCHA}), "product") == Ok(SENCHA)

    def test_missing_field(self):
        result = unwrap(ApiResponse(True, {"success": True}), "products")
        assert result.unwrap_err().kind is FetchErrorKind.API

    def test_unsuccessful_without_message(self):
        result = unwrap(ApiResponse(False, {"success": False}))
        assert result.unwrap_err().message == "Request was not successful"


class TestOptimisticProductUpdate:
    async def _warm(self, storefront):
        await storefront.product.get("a1")
        await storefront.products.get(ListingQuery(page=1))
        await storefront.best_sellers.get()

    async def test_applies_everywhere(self, storefront):
        await self._warm(storefront)

        result = await storefront.update_product_optimistic("a1", {"price": 10}, L.pure({"ok": True}))

        assert isinstance(result, Ok)
        assert storefront.product.peek("a1")["price"] == 10
        listing = storefront.products.peek(ListingQuery(page=1))["products"]
        assert [doc["price"] for doc in listing] == [10, 18]
        assert storefront.best_sellers.peek() == [OOLONG]

    async def test_rolls_back_on_failure(self, storefront):
        await self._warm(storefront)
        refused = F.FetchError(FetchErrorKind.API, "Forbidden", status=403)

        result = await storefront.update_product_optimistic("b2", {"name": "Da Hong Pao"}, L.fail(refused))

        assert result == Error(refused)
        assert storefront.best_sellers.peek() == [OOLONG]
        assert storefront.products.peek(ListingQuery(page=1))["products"][1] == OOLONG

    async def test_nothing_cached(self, storefront):
        result = await storefront.update_product_optimistic("a1", {"price": 1}, L.pure(None))
        assert isinstance(result, Ok)
        assert storefront.product.peek("a1") is None


async def test_clear_cache(storefront, shop):
    await storefront.categories.get()
    await storefront.product.get("a1")

    assert storefront.clear_cache() == 2
    await storefront.categories.get()
    assert shop.hits["/categories"] == 2
