"""
Optimistic updates — show the change now, roll back if the server refuses.

Every cached copy of the product (detail, listing pages, best sellers) is
patched before the request goes out. On failure the patches are undone in
reverse order.

Level 5: steeped.storefront
Level 4: steeped.fetch
"""

from kungfu import Ok, Error

from steeped import lift as L
from steeped.config import Settings
from steeped.fetch import FetchError, FetchErrorKind
from steeped import Session
from steeped.storefront import ListingQuery
from examples._infra import banner, run, FakeShop, make_api


async def main() -> None:
    banner("Optimistic Update With Rollback")

    api = make_api(FakeShop(latency=0))
    session = Session.create(Settings(), api=api)
    front = session.storefront

    await front.product.get("oolong")
    await front.products.get(ListingQuery())
    await front.best_sellers.get()

    def price() -> object:
        return front.product.peek("oolong")["price"]

    print(f"\n1. Cached price: {price()}")

    print("\n2. Server accepts new price:")
    result = await front.update_product_optimistic("oolong", {"price": 16}, L.pure("saved"))
    print(f"   {'ok' if isinstance(result, Ok) else 'failed'}, price now {price()}")

    print("\n3. Server refuses:")
    refused = FetchError(FetchErrorKind.API, "Price change not allowed", status=403)
    match await front.update_product_optimistic("oolong", {"price": 1}, L.fail(refused)):
        case Error(e):
            print(f"   {e.message}, price back to {price()}")
        case Ok(_):
            print("   unexpectedly accepted")

    await session.aclose()
    await api.aclose()


if __name__ == "__main__":
    run(main)
