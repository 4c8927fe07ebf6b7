"""Response cache storage."""

from spontaneity.adapters.cache.base import CacheEntry, CacheStore
from spontaneity.adapters.cache.in_memory import InMemoryCacheStore

__all__ = ["CacheEntry", "CacheStore", "InMemoryCacheStore"]
