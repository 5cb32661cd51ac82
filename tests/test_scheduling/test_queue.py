"""Tests for the concurrency-limited queue."""

import asyncio

import pytest

from addressflow.scheduling.queue import ConcurrencyLimitedQueue


class TestConcurrencyLimitedQueue:
    """Unit tests for ConcurrencyLimitedQueue."""

    async def test_single_slot_completes_in_enqueue_order(self):
        """Test FIFO completion with concurrency 1."""
        queue = ConcurrencyLimitedQueue(concurrency=1)
        finished = []

        async def task(n):
            await asyncio.sleep(0.005)
            finished.append(n)
            return n

        results = await asyncio.gather(*(queue.enqueue(lambda n=n: task(n)) for n in range(5)))

        assert results == [0, 1, 2, 3, 4]
        assert finished == [0, 1, 2, 3, 4]

    async def test_active_never_exceeds_concurrency(self):
        """Test bounded parallelism."""
        queue = ConcurrencyLimitedQueue(concurrency=2)
        running = 0
        peak = 0

        async def task():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        await asyncio.gather(*(queue.enqueue(task) for _ in range(6)))

        assert peak == 2
        assert queue.size() == 0

    async def test_failure_does_not_block_next_task(self):
        """Test a failing task admits the next one."""
        queue = ConcurrencyLimitedQueue(concurrency=1)

        async def failing():
            raise ValueError("boom")

        async def ok():
            return "ok"

        failed = asyncio.ensure_future(queue.enqueue(failing))
        succeeded = asyncio.ensure_future(queue.enqueue(ok))

        with pytest.raises(ValueError, match="boom"):
            await failed
        assert await succeeded == "ok"

    async def test_size_reports_queued_and_active(self):
        """Test backpressure visibility."""
        queue = ConcurrencyLimitedQueue(concurrency=1)
        release = asyncio.Event()

        async def blocked():
            await release.wait()

        tasks = [asyncio.ensure_future(queue.enqueue(blocked)) for _ in range(3)]
        await asyncio.sleep(0)

        assert queue.active == 1
        assert queue.pending == 2
        assert queue.size() == 3

        release.set()
        await asyncio.gather(*tasks)
        assert queue.size() == 0

    async def test_set_concurrency_admits_waiting_tasks(self):
        """Test raising the limit at runtime drains the queue."""
        queue = ConcurrencyLimitedQueue(concurrency=1)
        release = asyncio.Event()

        async def blocked():
            await release.wait()

        tasks = [asyncio.ensure_future(queue.enqueue(blocked)) for _ in range(3)]
        await asyncio.sleep(0)
        assert queue.active == 1

        assert queue.set_concurrency(3) == 3
        assert queue.active == 3

        release.set()
        await asyncio.gather(*tasks)

    def test_concurrency_has_a_floor_of_one(self):
        assert ConcurrencyLimitedQueue(concurrency=0).concurrency == 1
        assert ConcurrencyLimitedQueue().set_concurrency(-3) == 1
