"""Latency budgets for provider calls."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from addressflow.core.outcome import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_TIMEOUT_SECONDS = 0.05


class LatencyBudget:
    """Races a task against a timer and substitutes a fallback when it loses.

    Timeouts are soft: the losing task keeps running to completion in the
    background and its eventual result is dropped.

    The configured default is at least 0.1 s; any single call, including
    one given an explicit timeout, gets at least ``MIN_TIMEOUT_SECONDS``.
    """

    def __init__(self, default_timeout: float = 1.2) -> None:
        self.default_timeout = max(0.1, default_timeout)
        self._orphans: set[asyncio.Future[Any]] = set()

    @property
    def orphaned(self) -> int:
        """Timed-out tasks that are still running."""
        return len(self._orphans)

    async def run_with_timeout(
        self,
        task_factory: Callable[[], Awaitable[T]],
        timeout: float | None = None,
        fallback: Any = None,
    ) -> Outcome[Any]:
        """Run ``task_factory()`` within ``timeout`` seconds.

        Args:
            task_factory: Zero-argument coroutine function
            timeout: Budget in seconds (defaults to the configured budget)
            fallback: Value substituted on timeout or failure

        Returns:
            Outcome carrying the value, the fallback or the error, plus the
            elapsed milliseconds
        """
        budget = max(
            MIN_TIMEOUT_SECONDS,
            self.default_timeout if timeout is None else timeout,
        )
        start = time.perf_counter()

        try:
            task = asyncio.ensure_future(task_factory())
        except Exception as e:
            return Outcome.failure(e, fallback, _elapsed_ms(start))

        done, _ = await asyncio.wait({task}, timeout=budget)
        elapsed_ms = _elapsed_ms(start)

        if task not in done:
            logger.debug(f"Latency budget of {budget:.3f}s exceeded after {elapsed_ms}ms")
            self._orphans.add(task)
            task.add_done_callback(self._release_orphan)
            return Outcome.timeout(fallback, elapsed_ms)

        if task.cancelled():
            return Outcome.failure(asyncio.CancelledError(), fallback, elapsed_ms)
        error = task.exception()
        if error is not None:
            return Outcome.failure(error, fallback, elapsed_ms)
        return Outcome.success(task.result(), elapsed_ms)

    def _release_orphan(self, task: asyncio.Future[Any]) -> None:
        self._orphans.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Task finished with an error after its budget: {task.exception()}")


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))
