"""
Cart — normalized line items with memoized totals.

Key concepts:
- Identity = product id + variant, so the same tea in two sizes is two lines
- Totals are derived values: they recompute only when their inputs change
- Tax is charged on the subtotal before the coupon

Level 5: steeped.cart
Level 4: steeped.pricing
"""

from decimal import Decimal

from steeped.cart import CartPersistence, CartStore, MemoryStorage
from steeped.pricing import Coupon, CouponKind
from examples._infra import banner, run, money, product, variant, SENCHA, OOLONG


async def main() -> None:
    banner("Cart: Derived Totals")

    storage = MemoryStorage()
    cart = CartStore(tax_rate=10, persistence=CartPersistence(storage))
    cart.subscribe(lambda state: print(f"   [cart] {len(state.items)} line(s)"))

    sencha, oolong = product(SENCHA), product(OOLONG)

    print("\n1. Add teas:")
    cart.add(sencha, quantity=2, variant=variant(SENCHA, "50g"))
    cart.add(sencha, quantity=1, variant=variant(SENCHA, "100g"))
    cart.add(oolong)
    cart.add(oolong, quantity=0)  # ignored

    print("\n2. Totals:")
    summary = cart.summary()
    print(f"   items={summary.item_count} subtotal={money(summary.subtotal)}")
    print(f"   tax={money(summary.tax)} grand={money(summary.grand_total)}")

    print("\n3. Apply 20% coupon (subtotal is not recomputed):")
    cart.apply_coupon(Coupon("SPRING20", CouponKind.PERCENTAGE, Decimal(20)))
    print(f"   discounted={money(cart.discounted_total())} grand={money(cart.grand_total())}")
    print(f"   subtotal computed {cart.selectors.subtotal.recomputations}x")

    print("\n4. Restore from storage:")
    restored = CartStore.restored(CartPersistence(storage), tax_rate=10)
    print(f"   grand={money(restored.grand_total())} coupon={restored.coupon.code}")

    print("\nDone!")


if __name__ == "__main__":
    run(main)
