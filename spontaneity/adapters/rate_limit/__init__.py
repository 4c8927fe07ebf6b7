"""Rate limiting adapters.

The rate limiter keeps its windows behind a ``RateLimitStore`` so the
in-memory store can later be replaced by Redis or another shared store
without changing the limiter or the API layer.
"""

from spontaneity.adapters.rate_limit.base import RateLimitResult, RateLimitStore, RateLimitWindow
from spontaneity.adapters.rate_limit.in_memory import InMemoryRateLimitStore

__all__ = [
    "InMemoryRateLimitStore",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimitWindow",
]
