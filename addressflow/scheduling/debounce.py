"""Debounced execution of keystroke-driven async tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from addressflow.core.metrics import STALE_RESULTS_DISCARDED
from addressflow.scheduling.generations import Generations, Ticket

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedExecutor:
    """Collapses bursts of calls into one execution of the latest call.

    Each ``run`` cancels the unfired timer of the previous call, which then
    resolves to None without its task body ever running. A call whose body
    is already executing when a newer call arrives also resolves to None.
    Errors raised by an executed body only reach that call's awaiter.
    """

    def __init__(self, delay: float = 0.35) -> None:
        self.delay = max(0.0, delay)
        self._generations = Generations()
        self._timer: asyncio.TimerHandle | None = None
        self._pending: asyncio.Future[Any] | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def run(self, task: Callable[[], Awaitable[T]]) -> T | None:
        """Schedule ``task`` after the debounce delay.

        Args:
            task: Zero-argument coroutine function

        Returns:
            The task result, or None when a newer call superseded this one
        """
        loop = asyncio.get_running_loop()
        ticket = self._generations.issue()
        self._supersede_pending()

        future: asyncio.Future[Any] = loop.create_future()
        self._pending = future
        self._timer = loop.call_later(self.delay, self._fire, ticket, task, future)
        return await future

    def cancel(self) -> None:
        """Drop the pending call and void any body still executing."""
        self._generations.invalidate()
        self._supersede_pending()

    def _supersede_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None and not self._pending.done():
            self._pending.set_result(None)
            STALE_RESULTS_DISCARDED.labels(source="debounce").inc()
        self._pending = None

    def _fire(
        self,
        ticket: Ticket,
        task: Callable[[], Awaitable[Any]],
        future: asyncio.Future[Any],
    ) -> None:
        self._timer = None
        if future.done():
            return
        if not self._generations.is_current(ticket):
            future.set_result(None)
            return
        running = asyncio.ensure_future(self._execute(ticket, task, future))
        self._running.add(running)
        running.add_done_callback(self._running.discard)

    async def _execute(
        self,
        ticket: Ticket,
        task: Callable[[], Awaitable[Any]],
        future: asyncio.Future[Any],
    ) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            if not future.done():
                future.cancel()
            raise
        except Exception as e:
            if not future.done():
                future.set_exception(e)
            else:
                logger.debug(f"Debounced task failed after being superseded: {e}")
            return
        finally:
            if self._pending is future:
                self._pending = None

        if future.done():
            return
        if not self._generations.is_current(ticket):
            STALE_RESULTS_DISCARDED.labels(source="debounce").inc()
            future.set_result(None)
            return
        future.set_result(result)
