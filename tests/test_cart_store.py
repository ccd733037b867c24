import random
from decimal import Decimal

import pytest

from steeped.cart import CartPersistence, CartStore, EMPTY_CART
from steeped.pricing import Coupon, CouponKind, Product, Variant

from tests.conftest import FakeClock


def spring(value: str = "25") -> Coupon:
    return Coupon(code="SPRING", kind=CouponKind.PERCENTAGE, value=Decimal(value))


class TestAdd:
    def test_two_varieties(self, cart, sencha, oolong):
        cart.add(sencha, quantity=2)
        cart.add(Product(id="mint", name="Mint", price=Decimal("50")))

        summary = cart.summary()
        assert summary.subtotal == Decimal("250")
        assert summary.tax == Decimal("25.00")
        assert summary.grand_total == Decimal("275.00")
        assert summary.item_count == 3

    def test_fixed_coupon(self, cart, oolong):
        cart.add(oolong)
        cart.apply_coupon(Coupon(code="TEN", kind=CouponKind.FIXED, value=Decimal("50")))

        assert cart.discounted_total() == Decimal("150.00")
        assert cart.tax() == Decimal("20.00")
        assert cart.grand_total() == Decimal("170.00")

    def test_same_identity_merges(self, cart, sencha):
        cart.add(sencha, quantity=1)
        cart.add(sencha, quantity=3)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 4

    def test_variants_are_separate_lines(self, cart, sencha):
        small, large = sencha.variants
        cart.add(sencha, variant=small)
        cart.add(sencha, variant=large)
        cart.add(sencha)

        assert len(cart.items) == 3
        assert cart.subtotal() == Decimal("380")

    def test_equal_variant_values_merge(self, cart, sencha):
        cart.add(sencha, variant=Variant(name="50g", price=Decimal("100")))
        cart.add(sencha, variant=Variant(name="50g", price=Decimal("100.00")))
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_added_at_from_clock(self, cart, clock, sencha):
        cart.add(sencha)
        assert cart.items[0].added_at == clock.now

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5, "2", None])
    def test_invalid_quantity_is_noop(self, cart, sencha, quantity):
        cart.add(sencha, quantity=quantity)
        assert cart.state is EMPTY_CART

    def test_product_without_id_is_noop(self, cart):
        cart.add(Product(id="", name="ghost", price=Decimal("1")))
        assert cart.items == ()


class TestScenarios:
    def test_same_variant_merges_into_one_line(self, cart):
        a = Product(id="a", name="A", price=Decimal("100"))
        cart.add(a, quantity=2)
        cart.add(a, quantity=1)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.subtotal() == Decimal("300")

    def test_percentage_coupon(self, cart):
        cart.add(Product(id="b", name="B", price=Decimal("100")))
        cart.apply_coupon(Coupon(code="QUARTER", kind=CouponKind.PERCENTAGE, value=Decimal("25")))

        assert cart.discounted_total() == Decimal("75")
        assert cart.tax() == Decimal("10")
        assert cart.grand_total() == Decimal("85")


class TestUpdateAndRemove:
    def test_update_sets_not_adds(self, cart, sencha):
        cart.add(sencha, quantity=2)
        cart.update_quantity(sencha.id, 5)
        assert cart.items[0].quantity == 5

    def test_update_to_zero_removes(self, cart, sencha, oolong):
        cart.add(sencha, quantity=2)
        cart.add(oolong, quantity=1)
        cart.update_quantity(sencha.id, 0)

        assert [item.product.id for item in cart.items] == ["oolong"]
        assert cart.subtotal() == Decimal("200")

    def test_update_unknown_line_is_noop(self, cart, sencha):
        cart.add(sencha)
        state = cart.state
        cart.update_quantity("missing", 3)
        cart.update_quantity(sencha.id, 3, variant=sencha.variants[0])
        assert cart.state is state

    def test_update_same_quantity_is_noop(self, cart, sencha):
        cart.add(sencha, quantity=2)
        state = cart.state
        cart.update_quantity(sencha.id, 2)
        assert cart.state is state

    def test_remove_targets_one_variant(self, cart, sencha):
        small, large = sencha.variants
        cart.add(sencha, variant=small)
        cart.add(sencha, variant=large)
        cart.remove(sencha.id, small)

        assert not cart.contains(sencha.id, small)
        assert cart.contains(sencha.id, large)

    def test_remove_absent_is_noop(self, cart):
        cart.remove("nope")
        assert cart.state is EMPTY_CART

    def test_clear_drops_coupon(self, cart, sencha):
        cart.add(sencha)
        cart.apply_coupon(spring())
        cart.clear()

        assert cart.items == ()
        assert cart.coupon is None
        assert cart.grand_total() == Decimal("0.00")


class TestCoupon:
    def test_replaces_previous(self, cart, oolong):
        cart.add(oolong)
        cart.apply_coupon(spring("10"))
        cart.apply_coupon(spring("50"))
        assert cart.discounted_total() == Decimal("100.00")

    def test_remove_coupon(self, cart, oolong):
        cart.add(oolong)
        cart.apply_coupon(spring())
        cart.remove_coupon()
        assert cart.discounted_total() == Decimal("200.00")

    def test_json_number_value(self, cart, storage):
        cart.add(Product(id="b", name="B", price=100))
        cart.apply_coupon(Coupon(code="X", kind=CouponKind.PERCENTAGE, value=25.0))

        assert cart.coupon.value == Decimal("25.0")
        assert cart.grand_total() == Decimal("85.00")
        assert CartPersistence(storage).load().coupon == cart.coupon

    def test_string_kind(self, cart, oolong):
        cart.add(oolong)
        cart.apply_coupon(Coupon(code="TEN", kind="fixed", value=10))

        assert cart.coupon.kind is CouponKind.FIXED
        assert cart.discounted_total() == Decimal("190.00")

    def test_negative_value_ignored(self, cart, oolong):
        cart.add(oolong)
        cart.apply_coupon(Coupon(code="BAD", kind=CouponKind.FIXED, value=Decimal("-5")))
        assert cart.coupon is None

    def test_grand_total_is_discounted_plus_tax(self, cart, sencha, oolong):
        cart.add(sencha, quantity=3, variant=sencha.variants[1])
        cart.add(oolong, quantity=2)
        cart.apply_coupon(spring("15"))

        assert cart.grand_total() == cart.discounted_total() + cart.tax()


class TestLastModified:
    def test_stamped_on_mutation(self, cart, clock: FakeClock, sencha):
        assert cart.last_modified is None
        cart.add(sencha)
        first = cart.last_modified

        clock.advance(10)
        cart.update_quantity(sencha.id, 4)
        assert cart.last_modified > first

    def test_untouched_by_noop(self, cart, clock: FakeClock, sencha):
        cart.add(sencha)
        stamp = cart.last_modified
        clock.advance(10)
        cart.add(sencha, quantity=0)
        cart.remove("missing")
        assert cart.last_modified == stamp


class TestMemoization:
    def test_coupon_change_keeps_subtotal(self, cart, sencha):
        cart.add(sencha, quantity=2)
        cart.subtotal()
        cart.apply_coupon(spring())
        cart.grand_total()

        assert cart.selectors.subtotal.recomputations == 1
        assert cart.selectors.discounted_total.recomputations == 1

    def test_repeated_reads_compute_once(self, cart, sencha):
        cart.add(sencha)
        first = cart.summary()
        second = cart.summary()

        assert first is second
        assert cart.selectors.grand_total.recomputations == 1

    def test_items_change_recomputes_chain(self, cart, sencha, oolong):
        cart.add(sencha)
        cart.grand_total()
        cart.add(oolong)
        cart.grand_total()

        assert cart.selectors.subtotal.recomputations == 2
        assert cart.selectors.grand_total.recomputations == 2


class TestSubscribe:
    def test_notified_after_mutation(self, cart, sencha):
        seen = []
        cart.subscribe(seen.append)
        cart.add(sencha)
        cart.add(sencha, quantity=-1)

        assert len(seen) == 1
        assert seen[0] is cart.state

    def test_unsubscribe(self, cart, sencha):
        seen = []
        unsubscribe = cart.subscribe(seen.append)
        unsubscribe()
        cart.add(sencha)
        assert seen == []


def test_identity_keys_stay_unique(clock, sencha, oolong):
    cart = CartStore(clock=clock)
    rng = random.Random(7)
    variants = [None, *sencha.variants]

    for _ in range(300):
        product = rng.choice([sencha, oolong])
        variant = rng.choice(variants) if product is sencha else None
        match rng.randrange(4):
            case 0 | 1:
                cart.add(product, quantity=rng.randint(-1, 3), variant=variant)
            case 2:
                cart.update_quantity(product.id, rng.randint(-1, 4), variant=variant)
            case 3:
                cart.remove(product.id, variant)

        keys = [item.key for item in cart.items]
        assert len(keys) == len(set(keys))
        assert all(item.quantity > 0 for item in cart.items)
