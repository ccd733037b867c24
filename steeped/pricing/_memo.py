"""
Derived values — explicit, identity-keyed memoization.

    items = lambda state: state.items
    total = derived(items, compute=subtotal)

    total(state)   # computes
    total(state)   # cached: `state.items` is the same object
    total.recomputations  # 1

A derived value recomputes only when one of its inputs returns an object that
is not (`is`) the one it returned last time. Inputs are plain callables of the
state, so derived values chain: a derived value is itself a valid input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

type Selector[S, R] = Callable[[S], R]

_UNSET: Any = object()


class Derived[S, R]:
    """A memoized selector over declared inputs."""

    __slots__ = ("_inputs", "_compute", "_last_args", "_last_result", "recomputations")

    def __init__(
        self,
        inputs: tuple[Selector[S, Any], ...],
        compute: Callable[..., R],
    ) -> None:
        self._inputs = inputs
        self._compute = compute
        self._last_args: tuple[Any, ...] = _UNSET
        self._last_result: R = _UNSET
        self.recomputations = 0

    def __call__(self, state: S) -> R:
        args = tuple(select(state) for select in self._inputs)
        if self._last_args is not _UNSET and all(
            new is old for new, old in zip(args, self._last_args, strict=True)
        ):
            return self._last_result

        result = self._compute(*args)
        self._last_args = args
        self._last_result = result
        self.recomputations += 1
        return result

    def reset(self) -> None:
        """Forget the memoized result."""
        self._last_args = _UNSET
        self._last_result = _UNSET


def derived[S, R](
    *inputs: Selector[S, Any],
    compute: Callable[..., R],
) -> Derived[S, R]:
    """
    Declare a derived value.

    Example:
        count = derived(lambda s: s.items, compute=item_count)
        grand = derived(discounted, taxed, compute=grand_total)
    """
    if not inputs:
        raise ValueError("derived() needs at least one input")
    return Derived(inputs, compute)


__all__ = ("Selector", "Derived", "derived")
