"""
steeped — reactive query cache and cart pricing for the tea storefront.

    from steeped import cache as C    # Query results with freshness windows
    from steeped import fetch as F    # Cache-first resources, single-flight
    from steeped import cart as K     # Normalized cart + derived totals
    from steeped import pricing as P  # Pure pricing derivations
"""

from steeped import pricing
from steeped import cart
from steeped import cache
from steeped import fetch
from steeped import lift
from steeped._types import Lazy, Clock
from steeped.session import Session, open_session

__version__ = "0.1.0"

__all__ = (
    "pricing",
    "cart",
    "cache",
    "fetch",
    "lift",
    "Lazy",
    "Clock",
    "Session",
    "open_session",
)
