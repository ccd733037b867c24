"""
Pricing types — products, line items, coupons.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from steeped._canonical import canonical_json

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal

type MoneyLike = Decimal | int | float | str


def to_money(value: MoneyLike | None) -> Money:
    """
    Convert an incoming amount to Decimal.

    Floats go through str so that 0.1 stays 0.1 instead of its binary expansion.
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Variant:
    """A purchasable variant of a product (size, weight, tin...)."""

    name: str
    price: Decimal | None = None
    weight: str | None = None
    sku: str | None = None

    def __post_init__(self) -> None:
        if self.price is not None:
            object.__setattr__(self, "price", to_money(self.price))

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Variant:
        price = doc.get("price")
        return cls(
            name=str(doc.get("name") or "Default"),
            price=to_money(price) if price is not None else None,
            weight=doc.get("weight") or None,
            sku=doc.get("sku") or None,
        )


@dataclass(frozen=True, slots=True)
class Product:
    """Product as the cart sees it."""

    id: str
    name: str
    price: Decimal
    variants: tuple[Variant, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_money(self.price))

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Product:
        """Build from an API product document (`_id`, `price` or `defaultPrice`)."""
        product_id = doc.get("_id", doc.get("id"))
        if product_id is None:
            raise ValueError("product document has no id")
        price = doc.get("price")
        if price is None:
            price = doc.get("defaultPrice")
        return cls(
            id=str(product_id),
            name=str(doc.get("name") or "Unknown Product"),
            price=to_money(price),
            variants=tuple(Variant.from_document(v) for v in doc.get("variants") or ()),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Pieces
# ═══════════════════════════════════════════════════════════════════════════════

type IdentityKey = tuple[str, str]
"""(product id, canonical variant serialization)."""


def identity_key(product_id: str, variant: Variant | None) -> IdentityKey:
    return (product_id, canonical_json(variant))


@dataclass(frozen=True, slots=True)
class LineItem:
    """One cart entry: product + chosen variant + quantity."""

    product: Product
    selected_variant: Variant | None
    quantity: int
    added_at: datetime

    @property
    def key(self) -> IdentityKey:
        return identity_key(self.product.id, self.selected_variant)


class CouponKind(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True, slots=True)
class Coupon:
    """Discount code. At most one is active per cart."""

    code: str
    kind: CouponKind
    value: Decimal

    def __post_init__(self) -> None:
        # Accept wire shapes: "percentage" for the kind, JSON numbers for the value
        object.__setattr__(self, "kind", CouponKind(self.kind))
        object.__setattr__(self, "value", to_money(self.value))

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Coupon:
        """Build from an API coupon document (`code`, `type`, `value`)."""
        return cls(
            code=str(doc.get("code") or ""),
            kind=CouponKind(doc.get("type", doc.get("kind"))),
            value=to_money(doc.get("value")),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

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
)
