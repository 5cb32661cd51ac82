"""Tests for generations and the stale-result guard."""

import asyncio

import pytest

from addressflow.scheduling.generations import Generations, Ticket
from addressflow.scheduling.stale import StaleResultGuard


class TestGenerations:
    """Unit tests for Generations."""

    def test_generations_are_monotonic_per_key(self):
        generations = Generations()

        first = generations.issue("order-1")
        second = generations.issue("order-1")
        other = generations.issue("order-2")

        assert (first.generation, second.generation, other.generation) == (1, 2, 1)
        assert not generations.is_current(first)
        assert generations.is_current(second)
        assert generations.is_current(other)

    def test_invalidate_bumps_without_reuse(self):
        generations = Generations()
        ticket = generations.issue("k")

        assert generations.invalidate("k") == 2
        assert generations.issue("k") == Ticket("k", 3)
        assert not generations.is_current(ticket)

    def test_unknown_key_is_zero(self):
        assert Generations().current("missing") == 0


class TestStaleResultGuard:
    """Unit tests for StaleResultGuard."""

    async def test_slow_result_is_discarded_when_overtaken(self):
        """Test latest-wins for overlapping loads on one key."""
        guard = StaleResultGuard()

        async def slow():
            await asyncio.sleep(0.03)
            return "slow"

        async def fast():
            return "fast"

        slow_call = asyncio.ensure_future(guard.run("order", slow))
        await asyncio.sleep(0)
        fast_result = await guard.run("order", fast)

        assert fast_result == "fast"
        assert await slow_call is None

    async def test_keys_are_independent(self):
        """Test a newer call on another key does not void a result."""
        guard = StaleResultGuard()

        async def slow():
            await asyncio.sleep(0.01)
            return "pickup"

        async def fast():
            return "delivery"

        pickup = asyncio.ensure_future(guard.run(("order", "pickup"), slow))
        await asyncio.sleep(0)
        assert await guard.run(("order", "delivery"), fast) == "delivery"
        assert await pickup == "pickup"

    async def test_invalidate_voids_in_flight_result(self):
        guard = StaleResultGuard()

        async def slow():
            await asyncio.sleep(0.01)
            return "value"

        call = asyncio.ensure_future(guard.run("order", slow))
        await asyncio.sleep(0)
        guard.invalidate("order")

        assert await call is None
        assert guard.current("order") == 2

    async def test_requires_key_and_callable(self):
        guard = StaleResultGuard()

        with pytest.raises(ValueError):
            await guard.run("", lambda: None)
        with pytest.raises(ValueError):
            await guard.run("order", "not callable")
