from __future__ import annotations

from abc import ABC, abstractmethod


class CooldownStore(ABC):
    """Storage for per-provider cooldown deadlines (UNIX epoch seconds).

    There is deliberately no delete operation: a cooldown ends only when its
    deadline passes.
    """

    @abstractmethod
    def get(self, provider: str) -> float | None:
        """Return the cooldown deadline for provider, if one was ever set."""
        raise NotImplementedError

    @abstractmethod
    def set(self, provider: str, cooldown_until: float) -> None:
        """Store (overwrite) the cooldown deadline for provider."""
        raise NotImplementedError
