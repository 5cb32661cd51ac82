"""Bounded undo/redo history of editor snapshots."""

from collections import deque
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from addressflow.address.models import CanonicalAddress


class EditorSnapshot(BaseModel):
    """Immutable state of both edited addresses."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pickup: CanonicalAddress | None = Field(default=None, alias="editedPickup")
    delivery: CanonicalAddress | None = Field(default=None, alias="editedDelivery")

    def replace(self, side: str, address: CanonicalAddress | None) -> "EditorSnapshot":
        """Return a copy with one side replaced."""
        if side not in ("pickup", "delivery"):
            raise ValueError(f"Unknown address side: {side}")
        return self.model_copy(update={side: address})


def as_snapshot(value: Any) -> EditorSnapshot | None:
    if value is None or isinstance(value, EditorSnapshot):
        return value
    return EditorSnapshot.model_validate(value)


class UndoStack:
    """Past/current/future snapshots with a capacity bound on both stacks.

    Snapshots are frozen, so entries never share mutable state and can be
    handed out without copying.
    """

    def __init__(self, capacity: int = 50) -> None:
        self.capacity = max(1, capacity)
        self._past: deque[EditorSnapshot] = deque(maxlen=self.capacity)
        self._future: deque[EditorSnapshot] = deque(maxlen=self.capacity)
        self._current: EditorSnapshot | None = None

    @property
    def current(self) -> EditorSnapshot | None:
        return self._current

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def init(self, snapshot: Any) -> EditorSnapshot | None:
        """Reset the history to a single current snapshot."""
        self._past.clear()
        self._future.clear()
        self._current = as_snapshot(snapshot)
        return self._current

    def push(self, snapshot: Any) -> EditorSnapshot | None:
        """Record a new current snapshot and drop the redo history."""
        if self._current is not None:
            # deque(maxlen) evicts the oldest entry
            self._past.append(self._current)
        self._current = as_snapshot(snapshot)
        self._future.clear()
        return self._current

    def undo(self) -> EditorSnapshot | None:
        if not self._past:
            return self._current
        if self._current is not None:
            self._future.appendleft(self._current)
        self._current = self._past.pop()
        return self._current

    def redo(self) -> EditorSnapshot | None:
        if not self._future:
            return self._current
        if self._current is not None:
            self._past.append(self._current)
        self._current = self._future.popleft()
        return self._current

    def clear(self) -> None:
        """Forget past and future, keeping the current snapshot."""
        self._past.clear()
        self._future.clear()

    def __len__(self) -> int:
        return len(self._past) + len(self._future)
