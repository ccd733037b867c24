"""
Pricing engine — pure derivations over line items.

    subtotal ──┬── discounted_total ──┐
               └── tax ───────────────┴── grand_total

Nothing here rounds except `discounted_total`, `tax` and `grand_total`, each
of which rounds its own result half-up to cents. Tax is charged on the
pre-discount subtotal.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP

from steeped.pricing._types import Money, LineItem, Coupon, CouponKind

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
ZERO = Decimal(0)

DEFAULT_TAX_RATE = Decimal(10)


def round_money(value: Money) -> Money:
    """Round half-up to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price(item: LineItem) -> Money:
    """Variant price when the variant carries one, else the product price."""
    variant = item.selected_variant
    if variant is not None and variant.price is not None:
        return variant.price
    return item.product.price


def subtotal(items: Iterable[LineItem]) -> Money:
    return sum((unit_price(item) * item.quantity for item in items), ZERO)


def discounted_total(subtotal: Money, coupon: Coupon | None) -> Money:
    match coupon:
        case None:
            total = subtotal
        case Coupon(kind=CouponKind.PERCENTAGE, value=value):
            total = max(ZERO, subtotal * (1 - value / HUNDRED))
        case Coupon(kind=CouponKind.FIXED, value=value):
            total = max(ZERO, subtotal - value)
        case _:
            raise ValueError(f"Unsupported coupon {coupon!r}")
    return round_money(total)


def tax(subtotal: Money, rate: Money = DEFAULT_TAX_RATE) -> Money:
    """`rate` is a percentage of the pre-discount subtotal."""
    return round_money(subtotal * rate / HUNDRED)


def grand_total(discounted_total: Money, tax: Money) -> Money:
    return round_money(discounted_total + tax)


def item_count(items: Iterable[LineItem]) -> int:
    return sum(item.quantity for item in items)


__all__ = (
    "DEFAULT_TAX_RATE",
    "round_money",
    "unit_price",
    "subtotal",
    "discounted_total",
    "tax",
    "grand_total",
    "item_count",
)
