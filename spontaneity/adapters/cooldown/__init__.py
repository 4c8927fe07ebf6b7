"""Provider cooldown storage."""

from spontaneity.adapters.cooldown.base import CooldownStore
from spontaneity.adapters.cooldown.in_memory import InMemoryCooldownStore

__all__ = ["CooldownStore", "InMemoryCooldownStore"]
