"""
Fetch types — results, errors and per-key query state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from steeped._types import Lazy

# ═══════════════════════════════════════════════════════════════════════════════
# Request Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class FetchStatus(Enum):
    """
    Lifecycle of a query key.

        IDLE → PENDING → FULFILLED (success or cache hit)
                       → REJECTED (error)

    An aborted request returns the key to whatever it was before PENDING.
    """

    IDLE = auto()
    PENDING = auto()
    FULFILLED = auto()
    REJECTED = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class FetchErrorKind(Enum):
    NETWORK = auto()  # Transport failure, no usable response
    API = auto()  # Server answered with an error or success=false
    CANCELLED = auto()  # Aborted by the caller


@dataclass(frozen=True, slots=True)
class FetchError:
    """
    Failed fetch.

    Cancellation is reported as a value too, but is not meant for the user.
    """

    kind: FetchErrorKind
    message: str
    status: int | None = None
    cause: Exception | None = None

    @property
    def user_visible(self) -> bool:
        return self.kind is not FetchErrorKind.CANCELLED


CANCELLED = FetchError(FetchErrorKind.CANCELLED, "Request aborted")


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Fetched[T]:
    """
    Successful fetch with its source.

    Note: from_cache is False whenever the payload came off the network,
    including when the caller joined a request someone else started.
    """

    value: T
    from_cache: bool
    key: str


@dataclass(frozen=True, slots=True)
class QueryState[T]:
    """What the UI reads for one query key."""

    status: FetchStatus = FetchStatus.IDLE
    payload: T | None = None
    is_from_cache: bool = False
    error: FetchError | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is FetchStatus.PENDING


IDLE = QueryState()

type FetchFn[P, T] = Callable[[P], Lazy[T, FetchError]]
"""One network operation for a resource class."""

type Call[T] = Callable[[], Lazy[T, FetchError]]


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "FetchStatus",
    "FetchErrorKind",
    "FetchError",
    "CANCELLED",
    "Fetched",
    "QueryState",
    "IDLE",
    "FetchFn",
    "Call",
)
