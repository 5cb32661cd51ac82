"""Change-gated, idempotent saving of edited addresses."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from addressflow.address.equality import AddressEquality
from addressflow.core.metrics import SAVE_DECISIONS

logger = logging.getLogger(__name__)

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


class SavePayload(BaseModel):
    """Before/after state of an order's addresses."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(default="", alias="orderId")
    side: str = ""
    resolution: str = ""
    before: dict[str, Any] = Field(default_factory=dict)
    after: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class SaveResult:
    """Response of a save collaborator."""

    ok: bool
    value: Any = None
    error: Any = None


class SaveSkipReason(str, Enum):
    DUPLICATE = "Duplicate save call"
    NO_CHANGES = "No changes"


@dataclass(frozen=True)
class SaveDecision:
    """Whether a save was issued, and why not when it was skipped."""

    skipped: bool
    reason: SaveSkipReason | None = None
    result: SaveResult | None = None
    key: str | None = None

    @property
    def saved(self) -> bool:
        return not self.skipped and self.result is not None and self.result.ok


class Saver(Protocol):
    async def save(self, payload: SavePayload, idempotency_key: str) -> SaveResult: ...


def idempotency_token(order_id: str | None, side: str | None, payload: str | None) -> str:
    """Deterministic FNV-1a 32-bit token for a save request."""
    base = f"{order_id or ''}|{side or 'both'}|{payload or ''}"
    h = FNV_OFFSET_BASIS
    for char in base:
        h ^= ord(char)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return f"idem-{h:x}"


class IdempotentSaveGuard:
    """Suppresses duplicate and no-op saves.

    The composite key of the last successful save is remembered; a failed or
    raising save leaves it untouched so the same request can be retried.
    """

    def __init__(self, saver: Saver, equality: AddressEquality | None = None) -> None:
        self.saver = saver
        self.equality = equality or AddressEquality()
        self._last_key: str | None = None
        self._in_flight: set[str] = set()

    @property
    def last_key(self) -> str | None:
        return self._last_key

    def key_of(self, payload: SavePayload) -> str:
        def h(address: Any) -> str:
            return self.equality.hash(address or {})

        return "#".join(
            [
                payload.order_id or "",
                payload.side or "",
                payload.resolution or "",
                h(payload.before.get("pickup")),
                h(payload.before.get("delivery")),
                h(payload.after.get("pickup")),
                h(payload.after.get("delivery")),
            ]
        )

    def has_changes(self, payload: SavePayload) -> bool:
        for side in ("pickup", "delivery"):
            after = payload.after.get(side)
            if after is None:
                continue
            if not self.equality.equals(payload.before.get(side) or {}, after):
                return True
        return False

    async def save_if_changed(self, payload: SavePayload | dict[str, Any]) -> SaveDecision:
        """Save the payload unless it duplicates a save or changes nothing.

        A save is a duplicate while an identical one is still pending and
        after an identical one succeeded.

        Args:
            payload: SavePayload or an equivalent mapping

        Returns:
            SaveDecision with the saver's result when a save was issued
        """
        if not isinstance(payload, SavePayload):
            payload = SavePayload.model_validate(payload)

        key = self.key_of(payload)
        if key == self._last_key or key in self._in_flight:
            SAVE_DECISIONS.labels(decision="duplicate").inc()
            logger.info(f"Skipping duplicate save for order {payload.order_id}")
            return SaveDecision(skipped=True, reason=SaveSkipReason.DUPLICATE, key=key)

        if not self.has_changes(payload):
            SAVE_DECISIONS.labels(decision="no_changes").inc()
            logger.debug(f"Skipping save without changes for order {payload.order_id}")
            return SaveDecision(skipped=True, reason=SaveSkipReason.NO_CHANGES, key=key)

        token = idempotency_token(payload.order_id, payload.side, key)
        self._in_flight.add(key)
        try:
            result = await self.saver.save(payload, idempotency_key=token)
        finally:
            self._in_flight.discard(key)
        if result is not None and result.ok:
            self._last_key = key
            SAVE_DECISIONS.labels(decision="saved").inc()
        else:
            SAVE_DECISIONS.labels(decision="failed").inc()
            logger.warning(
                f"Save failed for order {payload.order_id}: "
                f"{result.error if result is not None else 'no result'}"
            )
        return SaveDecision(skipped=False, result=result, key=key)
