"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from decimal import Decimal

import httpx

from steeped.api import StorefrontApi
from steeped.pricing import Product, Variant


# Catalog
SENCHA = {
    "_id": "sencha",
    "name": "Sencha",
    "price": 12.5,
    "variants": [{"name": "50g", "price": 12.5}, {"name": "100g", "price": 22}],
}
OOLONG = {"_id": "oolong", "name": "Tieguanyin", "price": 18}
MINT = {"_id": "mint", "name": "Moroccan Mint", "price": 7.9}

CATALOG = {doc["_id"]: doc for doc in (SENCHA, OOLONG, MINT)}


def product(doc: dict) -> Product:
    return Product.from_document(doc)


def variant(doc: dict, name: str) -> Variant:
    return next(v for v in product(doc).variants if v.name == name)


# Fake API
class FakeShop:
    """Answers storefront endpoints from CATALOG, with a little latency."""

    def __init__(self, latency: float = 0.05) -> None:
        self.latency = latency
        self.requests = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        print(f"  [NETWORK] GET {request.url.path}?{request.url.query.decode()}")
        await asyncio.sleep(self.latency)

        path = request.url.path.removeprefix("/api")
        match path.split("/"):
            case ["", "products"]:
                return httpx.Response(200, json={"success": True, "products": list(CATALOG.values())})
            case ["", "products", "bestsellers" | "featured"]:
                return httpx.Response(200, json={"success": True, "products": [OOLONG]})
            case ["", "products", "search"]:
                term = request.url.params.get("q", "").lower()
                hits = [doc for doc in CATALOG.values() if term in doc["name"].lower()]
                return httpx.Response(200, json={"success": True, "products": hits})
            case ["", "categories"]:
                return httpx.Response(200, json={"success": True, "categories": [{"name": "Green"}]})
            case ["", "products", product_id] if product_id in CATALOG:
                return httpx.Response(200, json={"success": True, "product": CATALOG[product_id]})
            case _:
                return httpx.Response(404, json={"success": False, "message": "Product not found"})


def make_api(shop: FakeShop) -> StorefrontApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(shop), base_url="http://shop.local/api")
    return StorefrontApi(client)


# Helpers
def money(value: Decimal) -> str:
    return f"${value:.2f}"


def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
