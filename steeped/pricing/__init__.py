"""
Pricing — pure cart derivations.

    from steeped import pricing as P

    s = P.subtotal(items)
    total = P.grand_total(P.discounted_total(s, coupon), P.tax(s))
"""

from __future__ import annotations

from steeped.pricing._types import (
    Money,
    MoneyLike,
    to_money,
    Variant,
    Product,
    IdentityKey,
    identity_key,
    LineItem,
    CouponKind,
    Coupon,
)
from steeped.pricing._engine import (
    DEFAULT_TAX_RATE,
    round_money,
    unit_price,
    subtotal,
    discounted_total,
    tax,
    grand_total,
    item_count,
)
from steeped.pricing._memo import Selector, Derived, derived

__all__ = (
    "Money",
    "MoneyLike",
    "to_money",
    "Variant",
    "Product",
    "IdentityKey",
    "identity_key",
    "LineItem",
    "CouponKind",
    "Coupon",
    "DEFAULT_TAX_RATE",
    "round_money",
    "unit_price",
    "subtotal",
    "discounted_total",
    "tax",
    "grand_total",
    "item_count",
    "Selector",
    "Derived",
    "derived",
)
