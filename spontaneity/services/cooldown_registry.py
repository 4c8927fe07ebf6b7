"""Per-provider cooldowns after an LLM backend signals overload."""

from __future__ import annotations

import logging
import time
from typing import Callable

from spontaneity.adapters.cooldown.base import CooldownStore

logger = logging.getLogger(__name__)


class ProviderCooldownRegistry:
    """Time-bounded suppression of calls to overloaded providers.

    ``trigger`` always sets the deadline to ``now + cooldown_seconds``, even
    when the provider is already cooling down. There is no reset: a cooldown
    ends only when the clock passes its deadline.
    """

    def __init__(
        self,
        store: CooldownStore,
        *,
        cooldown_seconds: float = 600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be > 0")
        self._store = store
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock

    def is_cooling_down(self, provider: str) -> bool:
        until = self._store.get(provider)
        return until is not None and self._clock() < until

    def cooldown_until(self, provider: str) -> float | None:
        return self._store.get(provider)

    def trigger(self, provider: str) -> None:
        until = self._clock() + self._cooldown_seconds
        self._store.set(provider, until)
        logger.warning(
            "provider.cooldown_triggered",
            extra={"provider": provider, "cooldown_s": self._cooldown_seconds, "cooldown_until": until},
        )
