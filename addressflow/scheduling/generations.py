"""Generation tickets for detecting superseded asynchronous work."""

from collections.abc import Hashable
from dataclasses import dataclass

DEFAULT_KEY = "default"


@dataclass(frozen=True)
class Ticket:
    """Generation issued for ``key`` when an operation started."""

    key: Hashable
    generation: int


class Generations:
    """Monotonic counters per logical key.

    A suspended operation keeps the ticket it was issued and checks it
    against the current generation before committing its result.
    Generations are never reused.
    """

    def __init__(self) -> None:
        self._counters: dict[Hashable, int] = {}

    def issue(self, key: Hashable = DEFAULT_KEY) -> Ticket:
        generation = self._counters.get(key, 0) + 1
        self._counters[key] = generation
        return Ticket(key, generation)

    def invalidate(self, key: Hashable = DEFAULT_KEY) -> int:
        """Bump the generation for ``key`` without starting anything."""
        return self.issue(key).generation

    def current(self, key: Hashable = DEFAULT_KEY) -> int:
        return self._counters.get(key, 0)

    def is_current(self, ticket: Ticket) -> bool:
        return self._counters.get(ticket.key, 0) == ticket.generation
