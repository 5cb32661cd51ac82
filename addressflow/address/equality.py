"""Structural equality, stable hashing and field diffs for addresses.

The hash is a 32-bit rolling hash: cheap and stable across processes, which
is what cache keys, suggestion deduplication and save keys need. It is not
collision free and must not be used where an adversary controls the input.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from addressflow.address.models import IDENTIFYING_FIELDS, read_field

_WHITESPACE = re.compile(r"\s+")
_COORDINATE_FIELDS = frozenset({"latitude", "longitude"})


def rolling_hash(text: str) -> str:
    """Return the 32-bit rolling hash of ``text`` as ``h<hex>``."""
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    return f"h{h:x}"


@dataclass(frozen=True)
class FieldChange:
    """One compared field of a before/after pair."""

    field: str
    before: Any
    after: Any
    changed: bool


class AddressEquality:
    """Compares and hashes addresses over their seven identifying fields.

    Equality and hashing share the same per-field keys, so two addresses
    that compare equal always hash equal.
    """

    fields: tuple[str, ...] = IDENTIFYING_FIELDS

    def equals(self, a: Any, b: Any) -> bool:
        if a is None or b is None:
            return False
        return all(
            self._field_key(a, name) == self._field_key(b, name) for name in self.fields
        )

    def hash(self, address: Any) -> str:
        parts = [self._field_key(address, name) for name in self.fields]
        return rolling_hash("|".join(parts))

    def diff(self, before: Any, after: Any) -> list[FieldChange]:
        """Compare two addresses field by field."""
        changes = []
        for name in self.fields:
            old = read_field(before, name)
            new = read_field(after, name)
            changed = self._field_key(before, name) != self._field_key(after, name)
            changes.append(FieldChange(name, old, new, changed))
        return changes

    def changed_fields(self, before: Any, after: Any) -> list[str]:
        return [c.field for c in self.diff(before, after) if c.changed]

    def _field_key(self, address: Any, name: str) -> str:
        value = read_field(address, name)
        if name in _COORDINATE_FIELDS:
            return _coordinate_key(value)
        return _text_key(value)


def _text_key(value: Any) -> str:
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip().lower()


def _coordinate_key(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(number):
        return ""
    return f"{number:.6f}"
