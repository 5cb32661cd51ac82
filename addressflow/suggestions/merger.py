"""Cross-source deduplication of suggestion lists."""

from collections.abc import Iterable
from typing import Any

from addressflow.address.equality import AddressEquality
from addressflow.address.models import read_field


class SuggestionMerger:
    """Flattens suggestion lists, keeping the first suggestion per address.

    Duplicates are detected on street, house number, postal code, city and
    country code only; coordinates and scores do not take part.
    """

    def __init__(self, equality: AddressEquality | None = None) -> None:
        self.equality = equality or AddressEquality()

    def identity(self, suggestion: Any) -> str:
        return self.equality.hash(
            {
                "street": read_field(suggestion, "street"),
                "house_number": read_field(suggestion, "house_number"),
                "postal_code": read_field(suggestion, "postal_code"),
                "city": read_field(suggestion, "city"),
                "country": read_field(suggestion, "country_code"),
            }
        )

    def merge(self, base_input: Any, lists: Iterable[Any] | None) -> list[Any]:
        """Merge lists in order, dropping later duplicates.

        Args:
            base_input: Address the suggestions were requested for
            lists: Suggestion lists, one per source; None entries are skipped

        Returns:
            Flat list in first-seen order
        """
        merged: list[Any] = []
        seen: set[str] = set()
        for suggestions in lists or []:
            if not isinstance(suggestions, (list, tuple)):
                continue
            for suggestion in suggestions:
                if not suggestion:
                    continue
                key = self.identity(suggestion)
                if key in seen:
                    continue
                seen.add(key)
                merged.append(suggestion)
        return merged
