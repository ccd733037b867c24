"""
Cart — normalized line items with derived totals.

    from steeped import cart as K

    cart = K.CartStore(tax_rate=10)
    cart.add(product, quantity=2)
    cart.summary()
"""

from __future__ import annotations

from steeped.cart._types import (
    CartState,
    EMPTY_CART,
    CartSummary,
    Listener,
    Unsubscribe,
)
from steeped.cart._store import CartSelectors, build_selectors, CartStore
from steeped.cart._persist import (
    KeyValueStorage,
    MemoryStorage,
    FileStorage,
    PersistedCart,
    dump_cart,
    load_cart,
    CartPersistence,
)

__all__ = (
    "CartState",
    "EMPTY_CART",
    "CartSummary",
    "Listener",
    "Unsubscribe",
    "CartSelectors",
    "build_selectors",
    "CartStore",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "PersistedCart",
    "dump_cart",
    "load_cart",
    "CartPersistence",
)
