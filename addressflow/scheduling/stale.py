"""Latest-wins guard for overlapping asynchronous loads."""

import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import TypeVar

from addressflow.core.metrics import STALE_RESULTS_DISCARDED
from addressflow.scheduling.generations import Generations

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StaleResultGuard:
    """Discards results of calls superseded by a newer call for the same key."""

    def __init__(self, generations: Generations | None = None) -> None:
        self._generations = generations or Generations()

    async def run(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``fn`` and return its result unless a newer call was issued.

        Args:
            key: Logical key, e.g. an order id and address side
            fn: Zero-argument coroutine function

        Returns:
            The result, or None when it was superseded while running
        """
        if key is None or key == "" or not callable(fn):
            raise ValueError("StaleResultGuard.run requires a key and a callable")
        ticket = self._generations.issue(key)
        result = await fn()
        if not self._generations.is_current(ticket):
            logger.debug(f"Discarding stale result for {key!r} (generation {ticket.generation})")
            STALE_RESULTS_DISCARDED.labels(source="guard").inc()
            return None
        return result

    def invalidate(self, key: Hashable) -> int:
        """Void any in-flight result for ``key``."""
        return self._generations.invalidate(key)

    def current(self, key: Hashable) -> int:
        return self._generations.current(key)
