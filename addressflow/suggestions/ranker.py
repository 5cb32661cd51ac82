"""Deterministic ordering of suggestions."""

from typing import Any

from addressflow.address.models import read_field
from addressflow.suggestions.models import INSTANT_PRIORITY, PROVIDER_PRIORITY, ProviderSource


def _same(a: Any, b: Any) -> bool:
    return str(a or "").strip().lower() == str(b or "").strip().lower()


def _score(suggestion: Any) -> float:
    value = read_field(suggestion, "match_score")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def provider_priority(source: Any) -> int:
    try:
        return PROVIDER_PRIORITY.get(ProviderSource(source), 0)
    except ValueError:
        return 0


def suggestion_priority(suggestion: Any) -> int:
    if read_field(suggestion, "instant") is True:
        return INSTANT_PRIORITY
    return provider_priority(read_field(suggestion, "provider_source"))


class SuggestionRanker:
    """Orders suggestions by score, locality match and provider priority.

    The instant geocoder suggestion wins the provider tie-break whatever
    geocoder produced it.

    Python's sort is stable, so suggestions that tie on every criterion keep
    their input order.
    """

    def sort_key(self, base_input: Any, suggestion: Any) -> tuple[float, int, int, int]:
        city_match = _same(read_field(suggestion, "city"), read_field(base_input, "city"))
        postal_match = _same(
            read_field(suggestion, "postal_code"), read_field(base_input, "postal_code")
        )
        return (
            -_score(suggestion),
            0 if city_match else 1,
            0 if postal_match else 1,
            -suggestion_priority(suggestion),
        )

    def rank(self, base_input: Any, suggestions: Any) -> list[Any]:
        if not isinstance(suggestions, (list, tuple)):
            return []
        return sorted(suggestions, key=lambda s: self.sort_key(base_input, s))
