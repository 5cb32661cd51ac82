"""Bounded-parallelism FIFO task runner."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _QueuedTask:
    factory: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]


class ConcurrencyLimitedQueue:
    """Runs at most ``concurrency`` tasks at a time in FIFO order.

    Used to throttle provider calls so bursts of typing cannot exceed a
    provider's quota. A failing task never blocks the tasks behind it.
    """

    def __init__(self, concurrency: int = 2) -> None:
        self.concurrency = max(1, concurrency)
        self._queue: deque[_QueuedTask] = deque()
        self._active = 0
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._queue)

    def size(self) -> int:
        """Queued plus running tasks."""
        return len(self._queue) + self._active

    def set_concurrency(self, concurrency: int) -> int:
        self.concurrency = max(1, concurrency)
        self._drain()
        return self.concurrency

    async def enqueue(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Queue a task and wait for its result.

        Args:
            factory: Zero-argument coroutine function

        Returns:
            The task's result; its exception is raised to this caller only
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.append(_QueuedTask(factory, future))
        self._drain()
        return await future

    def _drain(self) -> None:
        while self._active < self.concurrency and self._queue:
            item = self._queue.popleft()
            if item.future.done():
                # Awaiter went away before the task was admitted
                continue
            self._active += 1
            task = asyncio.ensure_future(self._run(item))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, item: _QueuedTask) -> None:
        try:
            result = await item.factory()
        except Exception as e:
            if not item.future.done():
                item.future.set_exception(e)
        except asyncio.CancelledError:
            if not item.future.done():
                item.future.cancel()
            raise
        else:
            if not item.future.done():
                item.future.set_result(result)
        finally:
            self._active -= 1
            self._drain()
