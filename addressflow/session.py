"""Editing session for the pickup and delivery addresses of one order."""

from typing import Any, Literal

from addressflow.address.models import CanonicalAddress, read_field
from addressflow.core.config import settings
from addressflow.core.logging import get_order_logger
from addressflow.editing.save_guard import IdempotentSaveGuard, SaveDecision, SavePayload
from addressflow.editing.undo import EditorSnapshot, UndoStack
from addressflow.orchestrator import VerificationOrchestrator, VerificationResult

Side = Literal["pickup", "delivery"]
SIDES: tuple[Side, ...] = ("pickup", "delivery")


def _check_side(side: str) -> None:
    if side not in SIDES:
        raise ValueError(f"Unknown address side: {side}")


class EditorSession:
    """Ties verification, undo history and guarded saving together.

    Every accepted change becomes an undo step. Saving compares the current
    snapshot against the snapshot the session was opened with (or last
    saved), so unchanged addresses never reach the saver.
    """

    def __init__(
        self,
        order_id: str,
        orchestrator: VerificationOrchestrator,
        save_guard: IdempotentSaveGuard,
        undo_capacity: int | None = None,
    ) -> None:
        self.order_id = order_id
        self.orchestrator = orchestrator
        self.save_guard = save_guard
        self.history = UndoStack(
            settings.UNDO_CAPACITY if undo_capacity is None else undo_capacity
        )
        self._baseline = EditorSnapshot()
        self.logger = get_order_logger(order_id)

    @property
    def current(self) -> EditorSnapshot:
        return self.history.current or EditorSnapshot()

    def open(self, pickup: Any = None, delivery: Any = None) -> EditorSnapshot:
        """Start editing from the stored addresses."""
        normalizer = self.orchestrator.normalizer
        snapshot = EditorSnapshot(
            pickup=normalizer.normalize(pickup) if pickup is not None else None,
            delivery=normalizer.normalize(delivery) if delivery is not None else None,
        )
        self._baseline = snapshot
        self.history.init(snapshot)
        self.logger.info("Editor session opened")
        return snapshot

    def edit(self, side: Side, fragment: Any) -> EditorSnapshot:
        """Apply typed changes to one side as a new undo step."""
        _check_side(side)
        existing = getattr(self.current, side)
        merged = existing.model_dump() if existing is not None else {}
        for name in CanonicalAddress.model_fields:
            value = read_field(fragment, name)
            if value is not None:
                merged[name] = value
        address = self.orchestrator.normalizer.normalize(merged)
        return self.history.push(self.current.replace(side, address))

    def accept(self, side: Side, suggestion: Any) -> EditorSnapshot:
        """Replace one side with a chosen suggestion."""
        _check_side(side)
        address = self.orchestrator.normalizer.normalize(
            {
                "street": read_field(suggestion, "street"),
                "house_number": read_field(suggestion, "house_number"),
                "postal_code": read_field(suggestion, "postal_code"),
                "city": read_field(suggestion, "city"),
                "country": read_field(suggestion, "country_code"),
                "latitude": read_field(suggestion, "latitude"),
                "longitude": read_field(suggestion, "longitude"),
            }
        )
        self.logger.info(f"Accepted suggestion for {side}")
        return self.history.push(self.current.replace(side, address))

    def undo(self) -> EditorSnapshot:
        return self.history.undo() or EditorSnapshot()

    def redo(self) -> EditorSnapshot:
        return self.history.redo() or EditorSnapshot()

    async def verify(self, side: Side) -> VerificationResult | None:
        """Verify the current address of one side."""
        _check_side(side)
        return await self.orchestrator.verify(
            getattr(self.current, side), key=(self.order_id, side)
        )

    async def save(self, side: Side | Literal["both"], resolution: str = "") -> SaveDecision:
        """Save the edited side(s) through the idempotent save guard.

        Args:
            side: "pickup", "delivery" or "both"
            resolution: Resolution code recorded with the save

        Returns:
            The guard's decision
        """
        sides = SIDES if side == "both" else (side,)
        for name in sides:
            _check_side(name)

        current = self.current
        payload = SavePayload(
            order_id=self.order_id,
            side=side,
            resolution=resolution,
            before={name: getattr(self._baseline, name) for name in SIDES},
            after={name: getattr(current, name) for name in sides},
        )
        decision = await self.save_guard.save_if_changed(payload)
        if decision.saved:
            updates = {name: getattr(current, name) for name in sides}
            self._baseline = self._baseline.model_copy(update=updates)
            self.logger.info(f"Saved {side} address")
        return decision

    def snapshot(self) -> dict[str, Any]:
        """Serializable edited state for an autosave collaborator."""
        current = self.current
        return {
            "editedPickup": _dump(current.pickup),
            "editedDelivery": _dump(current.delivery),
        }

    def close(self) -> None:
        """Void in-flight verifications for this order."""
        for side in SIDES:
            self.orchestrator.cancel((self.order_id, side))
            self.orchestrator.invalidate((self.order_id, side))
        self.logger.info("Editor session closed")


def _dump(address: CanonicalAddress | None) -> dict[str, Any] | None:
    if address is None:
        return None
    return address.model_dump(by_alias=True, mode="json")
