"""Undo history and guarded saving for the address editor."""

from addressflow.editing.save_guard import (
    IdempotentSaveGuard,
    SaveDecision,
    SavePayload,
    SaveResult,
    Saver,
    SaveSkipReason,
    idempotency_token,
)
from addressflow.editing.undo import EditorSnapshot, UndoStack

__all__ = [
    "EditorSnapshot",
    "IdempotentSaveGuard",
    "SaveDecision",
    "SavePayload",
    "SaveResult",
    "SaveSkipReason",
    "Saver",
    "UndoStack",
    "idempotency_token",
]
