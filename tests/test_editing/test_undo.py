"""Tests for the editor undo history."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from addressflow.address.models import CanonicalAddress
from addressflow.editing.undo import EditorSnapshot, UndoStack


def _snapshot(street: str) -> EditorSnapshot:
    return EditorSnapshot(pickup=CanonicalAddress(street=street, city="Warszawa"))


class TestEditorSnapshot:
    """Unit tests for EditorSnapshot."""

    def test_replace_returns_a_copy(self):
        original = _snapshot("Polna")
        delivery = CanonicalAddress(street="Długa", city="Gdańsk")

        updated = original.replace("delivery", delivery)

        assert updated.delivery == delivery
        assert updated.pickup == original.pickup
        assert original.delivery is None

    def test_replace_rejects_unknown_side(self):
        with pytest.raises(ValueError):
            _snapshot("Polna").replace("billing", None)

    def test_snapshots_are_frozen(self):
        with pytest.raises(PydanticValidationError):
            _snapshot("Polna").pickup = None

    def test_accepts_camel_case_keys(self):
        snapshot = EditorSnapshot.model_validate(
            {"editedPickup": {"street": "Polna", "city": "Warszawa"}}
        )

        assert snapshot.pickup.street == "Polna"
        assert snapshot.delivery is None


class TestUndoStack:
    """Unit tests for UndoStack."""

    def test_undo_redo_round_trip(self):
        """Test undo returns the previous snapshot and redo restores it."""
        stack = UndoStack()
        s0, s1, s2 = _snapshot("A"), _snapshot("B"), _snapshot("C")
        stack.init(s0)
        stack.push(s1)
        stack.push(s2)

        assert stack.undo() == s1
        assert stack.undo() == s0
        assert stack.redo() == s1
        assert stack.redo() == s2
        assert stack.current == s2

    def test_push_clears_redo_history(self):
        stack = UndoStack()
        stack.init(_snapshot("A"))
        stack.push(_snapshot("B"))
        stack.undo()

        stack.push(_snapshot("C"))

        assert not stack.can_redo
        assert stack.redo() == _snapshot("C")

    def test_undo_and_redo_at_the_edges_are_no_ops(self):
        stack = UndoStack()
        stack.init(_snapshot("A"))

        assert stack.undo() == _snapshot("A")
        assert stack.redo() == _snapshot("A")
        assert not stack.can_undo
        assert not stack.can_redo

    def test_capacity_bounds_history(self):
        stack = UndoStack(capacity=3)
        stack.init(_snapshot("0"))
        for n in range(1, 6):
            stack.push(_snapshot(str(n)))

        undone = []
        while stack.can_undo:
            undone.append(stack.undo().pickup.street)

        assert undone == ["4", "3", "2"]
        assert len(stack) == 3

    def test_init_resets_history(self):
        stack = UndoStack()
        stack.init(_snapshot("A"))
        stack.push(_snapshot("B"))

        stack.init(_snapshot("Z"))

        assert stack.current == _snapshot("Z")
        assert len(stack) == 0

    def test_clear_keeps_current(self):
        stack = UndoStack()
        stack.init(_snapshot("A"))
        stack.push(_snapshot("B"))

        stack.clear()

        assert stack.current == _snapshot("B")
        assert not stack.can_undo

    def test_mappings_are_validated(self):
        stack = UndoStack()

        current = stack.push({"editedDelivery": {"street": "Długa", "city": "Gdańsk"}})

        assert isinstance(current, EditorSnapshot)
        assert current.delivery.city == "Gdańsk"
