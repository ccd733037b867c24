"""
Cart types — state snapshot and summary.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from steeped.pricing import LineItem, Coupon, Money

# ═══════════════════════════════════════════════════════════════════════════════
# State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartState:
    """
    Immutable cart snapshot.

    Every effective mutation produces a new CartState. Unchanged parts are
    carried over by reference, so derived values keyed on `items` survive a
    coupon change untouched.
    """

    items: tuple[LineItem, ...] = ()
    coupon: Coupon | None = None
    last_modified: datetime | None = None


EMPTY_CART = CartState()


# ═══════════════════════════════════════════════════════════════════════════════
# Summary — what the UI reads
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartSummary:
    items: tuple[LineItem, ...]
    item_count: int
    subtotal: Money
    tax: Money
    discounted_total: Money
    grand_total: Money
    coupon: Coupon | None


type Listener = Callable[[CartState], None]

type Unsubscribe = Callable[[], None]


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CartState",
    "EMPTY_CART",
    "CartSummary",
    "Listener",
    "Unsubscribe",
)
