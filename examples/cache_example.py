"""
Storefront — cache-first catalog reads.

Key concepts:
- Resource = one resource class (products, product, search...) with its own TTL
- Key = namespace + canonical params, so {"page": 1, "sort": "price"} and
  {"sort": "price", "page": 1} share a slot
- Concurrent misses on one key share a single request

Level 5: steeped.storefront
Level 4: steeped.fetch
Level 3: steeped.cache
"""

import asyncio

from kungfu import Ok, Error

from steeped import Session
from steeped.config import Settings
from steeped.storefront import ListingQuery
from examples._infra import banner, run, FakeShop, make_api


def show(label: str, result) -> None:
    match result:
        case Ok(fetched):
            source = "cache" if fetched.from_cache else "network"
            print(f"   {label}: {fetched.key} from {source}")
        case Error(e) if e.user_visible:
            print(f"   {label}: error {e.message}")
        case Error(_):
            print(f"   {label}: aborted")


async def main() -> None:
    banner("Storefront: Cache-First Reads")

    shop = FakeShop()
    api = make_api(shop)
    session = Session.create(Settings(), api=api)
    front = session.storefront

    print("\n1. First listing page (miss → network):")
    show("page 1", await front.products.get(ListingQuery(page=1, sort="price")))

    print("\n2. Same query, params in another order (hit):")
    show("page 1", await front.products.get({"sort": "price", "limit": 12, "page": 1}))

    print("\n3. Three concurrent product reads (one request):")
    results = await asyncio.gather(*(front.product.get("sencha")() for _ in range(3)))
    for result in results:
        show("sencha", result)

    print("\n4. Short search term (no request at all):")
    show("'s'", await front.search("s"))

    print("\n5. Abort an in-flight search:")
    pending = asyncio.create_task(front.search("mint")())
    await asyncio.sleep(0.01)
    front.abort_search("mint")
    show("mint", await pending)

    print("\n6. Unknown product (error, nothing cached):")
    show("nope", await front.product.get("nope"))

    stats = session.cache.stats
    print(f"\nRequests: {shop.requests}  hits={stats.hits} misses={stats.misses}")
    await session.aclose()
    await api.aclose()


if __name__ == "__main__":
    run(main)
