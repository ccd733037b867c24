"""
Lift — Helpers for lifting values into steeped computations.

Re-exports from combinators.lift with storefront-specific additions.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult, Result

# Re-export the parts of combinators.lift we build on
from combinators.lift import (
    pure,
    fail,
    catching_async,
)


# ═══════════════════════════════════════════════════════════════════════════════
# steeped-specific helpers
# ═══════════════════════════════════════════════════════════════════════════════

def from_awaitable[T, E](
    awaitable_fn: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
) -> LazyCoroResult[T, E]:
    """
    Create LazyCoroResult from an async function.

    Exceptions become Error(on_error(exc)).
    asyncio.CancelledError is not an Exception and propagates.
    """
    return catching_async(awaitable_fn, on_error=on_error)


def then_sync[T, U, E](
    lazy: LazyCoroResult[T, E],
    f: Callable[[T], Result[U, E]],
) -> LazyCoroResult[U, E]:
    """Chain a synchronous Result-returning step after a lazy computation."""
    async def _next(value: T) -> Result[U, E]:
        return f(value)
    return lazy.then(_next)


__all__ = (
    # From combinators.lift
    "pure",
    "fail",
    "catching_async",
    # steeped additions
    "from_awaitable",
    "then_sync",
)
