"""Flags ambiguous suggestion lists."""

from dataclasses import dataclass
from typing import Any

from addressflow.address.models import read_field


@dataclass(frozen=True)
class SuggestionConflicts:
    """Conflicts found relative to the top suggestion."""

    has_postal_conflict: bool = False
    has_city_conflict: bool = False

    @property
    def any(self) -> bool:
        return self.has_postal_conflict or self.has_city_conflict


def _key(value: Any) -> str:
    return str(value or "").strip().lower()


class SuggestionConflictDetector:
    """Detects suggestions that disagree with the top one on a single field.

    A postal conflict is the same street and city with another postal code;
    a city conflict is the same street and postal code with another city.
    """

    def analyze(self, suggestions: list[Any] | None) -> SuggestionConflicts:
        if not suggestions or len(suggestions) < 2:
            return SuggestionConflicts()

        top = suggestions[0]
        street = _key(read_field(top, "street"))
        city = _key(read_field(top, "city"))
        postal = _key(read_field(top, "postal_code"))

        postal_codes: set[str] = set()
        cities: set[str] = set()
        for suggestion in suggestions:
            s_street = _key(read_field(suggestion, "street"))
            s_city = _key(read_field(suggestion, "city"))
            s_postal = _key(read_field(suggestion, "postal_code"))
            if s_street != street:
                continue
            if s_postal and s_city == city:
                postal_codes.add(s_postal)
            if s_city and s_postal == postal:
                cities.add(s_city)

        return SuggestionConflicts(
            has_postal_conflict=len(postal_codes) > 1,
            has_city_conflict=len(cities) > 1,
        )
