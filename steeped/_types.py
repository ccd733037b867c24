"""
Core types for steeped.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from kungfu import LazyCoroResult

type Lazy[T, E] = LazyCoroResult[T, E]
"""Deferred network work: nothing runs until it is awaited."""

type Clock = Callable[[], datetime]
"""Source of "now". Injected everywhere time matters so tests can drive it."""


def system_clock() -> datetime:
    return datetime.now()


__all__ = ("Lazy", "Clock", "system_clock")
