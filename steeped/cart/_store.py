"""
CartStore — the normalized cart and its derived totals.

Mutations are synchronous and never raise: malformed input (non-positive
quantity on add, unknown line on update) is a logged no-op. Each effective
mutation swaps in a new CartState, stamps `last_modified`, persists, and
notifies subscribers. Totals are read through memoized derived values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from steeped._types import Clock, system_clock
from steeped import pricing as P
from steeped.pricing import LineItem, Coupon, Product, Variant, Money, MoneyLike
from steeped.cart._types import CartState, CartSummary, EMPTY_CART, Listener, Unsubscribe
from steeped.cart._persist import CartPersistence

logger = logging.getLogger(__name__)


def _select_items(state: CartState) -> tuple[LineItem, ...]:
    return state.items


def _select_coupon(state: CartState) -> Coupon | None:
    return state.coupon


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


# ═══════════════════════════════════════════════════════════════════════════════
# Selector Graph
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartSelectors:
    """
    The derivation chain, exposed so its memoization can be inspected.

        items ──┬── item_count
                └── subtotal ──┬── discounted_total (+ coupon) ──┐
                               └── tax (+ rate) ─────────────────┴── grand_total
    """

    item_count: P.Derived[CartState, int]
    subtotal: P.Derived[CartState, Money]
    discounted_total: P.Derived[CartState, Money]
    tax: P.Derived[CartState, Money]
    grand_total: P.Derived[CartState, Money]
    summary: P.Derived[CartState, CartSummary]


def build_selectors(tax_rate: Money) -> CartSelectors:
    def _select_rate(_: CartState) -> Money:
        return tax_rate

    item_count = P.derived(_select_items, compute=P.item_count)
    subtotal = P.derived(_select_items, compute=P.subtotal)
    discounted = P.derived(subtotal, _select_coupon, compute=P.discounted_total)
    tax = P.derived(subtotal, _select_rate, compute=P.tax)
    grand = P.derived(discounted, tax, compute=P.grand_total)
    summary = P.derived(
        _select_items, item_count, subtotal, tax, discounted, grand, _select_coupon,
        compute=CartSummary,
    )
    return CartSelectors(
        item_count=item_count,
        subtotal=subtotal,
        discounted_total=discounted,
        tax=tax,
        grand_total=grand,
        summary=summary,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CartStore
# ═══════════════════════════════════════════════════════════════════════════════


class CartStore:
    """
    Owns the cart's line items and coupon slot.

    Example:
        cart = CartStore(tax_rate=10)
        cart.add(green_tea, quantity=2)
        cart.apply_coupon(Coupon("SPRING", CouponKind.PERCENTAGE, Decimal(25)))
        cart.summary().grand_total
    """

    def __init__(
        self,
        *,
        state: CartState = EMPTY_CART,
        clock: Clock = system_clock,
        tax_rate: MoneyLike = P.DEFAULT_TAX_RATE,
        persistence: CartPersistence | None = None,
    ) -> None:
        self._state = state
        self._clock = clock
        self._persistence = persistence
        self._listeners: list[Listener] = []
        self.tax_rate = P.to_money(tax_rate)
        self.selectors = build_selectors(self.tax_rate)

    @classmethod
    def restored(
        cls,
        persistence: CartPersistence,
        *,
        clock: Clock = system_clock,
        tax_rate: MoneyLike = P.DEFAULT_TAX_RATE,
    ) -> CartStore:
        """Build a store from whatever the persistence layer has saved."""
        return cls(
            state=persistence.load(),
            clock=clock,
            tax_rate=tax_rate,
            persistence=persistence,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def last_modified(self) -> datetime | None:
        return self._state.last_modified

    @property
    def items(self) -> tuple[LineItem, ...]:
        return self._state.items

    @property
    def coupon(self) -> Coupon | None:
        return self._state.coupon

    def item_count(self) -> int:
        return self.selectors.item_count(self._state)

    def subtotal(self) -> Money:
        return self.selectors.subtotal(self._state)

    def discounted_total(self) -> Money:
        return self.selectors.discounted_total(self._state)

    def tax(self) -> Money:
        return self.selectors.tax(self._state)

    def grand_total(self) -> Money:
        return self.selectors.grand_total(self._state)

    def summary(self) -> CartSummary:
        return self.selectors.summary(self._state)

    def find(self, product_id: str, variant: Variant | None = None) -> LineItem | None:
        key = P.identity_key(product_id, variant)
        return next((item for item in self._state.items if item.key == key), None)

    def contains(self, product_id: str, variant: Variant | None = None) -> bool:
        return self.find(product_id, variant) is not None

    # ─────────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────────

    def add(self, product: Product, quantity: int = 1, variant: Variant | None = None) -> None:
        """Add `quantity` of product/variant, merging into an existing line."""
        if not _is_positive_int(quantity):
            logger.debug("add ignored: invalid quantity %r for %r", quantity, getattr(product, "id", None))
            return
        if not getattr(product, "id", None):
            logger.debug("add ignored: product without id %r", product)
            return

        key = P.identity_key(product.id, variant)
        items = list(self._state.items)
        for index, item in enumerate(items):
            if item.key == key:
                items[index] = replace(item, quantity=item.quantity + quantity)
                break
        else:
            items.append(
                LineItem(
                    product=product,
                    selected_variant=variant,
                    quantity=quantity,
                    added_at=self._clock(),
                )
            )
        self._commit(replace(self._state, items=tuple(items)))

    def remove(self, product_id: str, variant: Variant | None = None) -> None:
        key = P.identity_key(product_id, variant)
        items = tuple(item for item in self._state.items if item.key != key)
        if len(items) == len(self._state.items):
            logger.debug("remove ignored: %r not in cart", key)
            return
        self._commit(replace(self._state, items=items))

    def update_quantity(
        self,
        product_id: str,
        quantity: int,
        variant: Variant | None = None,
    ) -> None:
        """Set the line's quantity outright; `quantity <= 0` removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            logger.debug("update_quantity ignored: invalid quantity %r", quantity)
            return
        existing = self.find(product_id, variant)
        if existing is None:
            logger.debug("update_quantity ignored: %r not in cart", product_id)
            return
        if quantity <= 0:
            self.remove(product_id, variant)
            return
        if quantity == existing.quantity:
            return

        items = tuple(
            replace(item, quantity=quantity) if item is existing else item
            for item in self._state.items
        )
        self._commit(replace(self._state, items=items))

    def clear(self) -> None:
        """Empty the cart and drop the coupon."""
        self._commit(replace(self._state, items=(), coupon=None))

    def apply_coupon(self, coupon: Coupon) -> None:
        """Replace the coupon slot."""
        if coupon.value < 0:
            logger.debug("apply_coupon ignored: negative value on %r", coupon.code)
            return
        self._commit(replace(self._state, coupon=coupon))

    def remove_coupon(self) -> None:
        if self._state.coupon is None:
            return
        self._commit(replace(self._state, coupon=None))

    # ─────────────────────────────────────────────────────────────────────────
    # Subscriptions
    # ─────────────────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Call `listener(state)` after every effective mutation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: CartState) -> None:
        self._state = replace(state, last_modified=self._clock())
        if self._persistence is not None:
            self._persistence.save(self._state)
        for listener in tuple(self._listeners):
            listener(self._state)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("CartSelectors", "build_selectors", "CartStore")
