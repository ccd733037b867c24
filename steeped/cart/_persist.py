"""
Cart persistence — durable key-value storage for items + coupon.

Only the cart survives a restart. The query cache never touches storage.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import orjson
from pydantic import TypeAdapter, ValidationError

from steeped.pricing import LineItem, Coupon
from steeped.cart._types import CartState, EMPTY_CART

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol — Host Environment Implements This
# ═══════════════════════════════════════════════════════════════════════════════


class KeyValueStorage(Protocol):
    """
    Durable key-value storage.

    Example:
        class RedisStorage:
            def __init__(self, client: Redis) -> None:
                self.client = client

            def get(self, key: str) -> bytes | None:
                return self.client.get(key)

            def set(self, key: str, value: bytes) -> None:
                self.client.set(key, value)

            def delete(self, key: str) -> bool:
                return self.client.delete(key) > 0
    """

    def get(self, key: str) -> bytes | None:
        """Stored bytes, or None when the key was never written."""
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def delete(self, key: str) -> bool:
        """Returns True if the key existed."""
        ...


class MemoryStorage:
    """In-process storage. Lost on exit; meant for tests."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class FileStorage:
    """One JSON file per key under `directory`."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a crash never leaves half a cart on disk
        fd, tmp = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
            return True
        except FileNotFoundError:
            return False


# ═══════════════════════════════════════════════════════════════════════════════
# Persisted Shape
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PersistedCart:
    items: tuple[LineItem, ...] = ()
    coupon: Coupon | None = None


_adapter = TypeAdapter(PersistedCart)


def dump_cart(state: CartState) -> bytes:
    snapshot = PersistedCart(items=state.items, coupon=state.coupon)
    return orjson.dumps(_adapter.dump_python(snapshot, mode="json"))


def load_cart(raw: bytes) -> CartState:
    """
    Parse stored bytes into a CartState.

    Entries with a non-positive quantity are dropped and duplicate identity
    keys are merged, so a hand-edited file cannot break the cart invariant.
    """
    persisted = _adapter.validate_python(orjson.loads(raw))

    merged: dict[tuple[str, str], LineItem] = {}
    for item in persisted.items:
        if item.quantity <= 0:
            continue
        existing = merged.get(item.key)
        if existing is None:
            merged[item.key] = item
        else:
            merged[item.key] = LineItem(
                product=existing.product,
                selected_variant=existing.selected_variant,
                quantity=existing.quantity + item.quantity,
                added_at=existing.added_at,
            )
    return CartState(items=tuple(merged.values()), coupon=persisted.coupon)


# ═══════════════════════════════════════════════════════════════════════════════
# CartPersistence
# ═══════════════════════════════════════════════════════════════════════════════


class CartPersistence:
    """Saves and restores the cart under a single storage key."""

    def __init__(self, storage: KeyValueStorage, key: str = "cart") -> None:
        self.storage = storage
        self.key = key

    def load(self) -> CartState:
        """Restore the saved cart. Missing or unreadable data yields an empty cart."""
        try:
            raw = self.storage.get(self.key)
        except OSError as e:
            logger.warning("Failed to read persisted cart %r: %s", self.key, e)
            return EMPTY_CART
        if raw is None:
            return EMPTY_CART

        try:
            state = load_cart(raw)
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to parse persisted cart %r: %s", self.key, e)
            return EMPTY_CART

        logger.info("Restored cart %r with %d line item(s)", self.key, len(state.items))
        return state

    def save(self, state: CartState) -> bool:
        """Write the cart. Storage failures are logged; the cart keeps working."""
        try:
            if not state.items and state.coupon is None:
                self.storage.delete(self.key)
            else:
                self.storage.set(self.key, dump_cart(state))
        except OSError as e:
            logger.warning("Failed to persist cart %r: %s", self.key, e)
            return False
        return True


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "PersistedCart",
    "dump_cart",
    "load_cart",
    "CartPersistence",
)
