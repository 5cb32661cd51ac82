"""Maps raw provider payloads onto the Suggestion model."""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from addressflow.suggestions.models import (
    MatchLevel,
    ProviderShape,
    ProviderSource,
    Suggestion,
)

logger = logging.getLogger(__name__)

GEOCODER_PRIOR = 0.95
PLACES_PRIOR = 0.90
TES_PRIOR = 0.70

# Google address component types read into the component index
_COMPONENT_TYPES = frozenset(
    {
        "route",
        "street_number",
        "postal_code",
        "locality",
        "postal_town",
        "administrative_area_level_2",
    }
)


def _get(source: Any, name: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _coordinate(value: Any) -> float | None:
    """Read a coordinate given as a number or a zero-argument callable."""
    if callable(value):
        value = value()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def index_components(components: Iterable[Any] | None) -> dict[str, str]:
    """Index Google-style ``address_components`` by component type."""
    index: dict[str, str] = {}
    for component in components or []:
        long_name = _get(component, "long_name")
        for kind in _get(component, "types") or []:
            if kind == "country":
                index["country"] = long_name
                index["country_code"] = _get(component, "short_name")
            elif kind in _COMPONENT_TYPES:
                index[kind] = long_name
    return index


class SuggestionNormalizer:
    """One mapper per provider shape, all emitting Suggestion records."""

    def __init__(self, default_country: str = "PL") -> None:
        self.default_country = default_country
        self._mappers: dict[ProviderShape, Callable[[Any], Suggestion | None]] = {
            ProviderShape.GEOCODER: self.from_geocoder,
            ProviderShape.PLACES: self.from_places,
            ProviderShape.TES: self.from_tes,
        }

    def from_geocoder(self, raw: Any) -> Suggestion | None:
        if not raw:
            return None
        return self._from_google(
            raw,
            label=_get(raw, "formatted_address"),
            score=GEOCODER_PRIOR,
            level=MatchLevel.GEOCODER,
            source=ProviderSource.GOOGLE_CLIENT,
        )

    def from_places(self, raw: Any) -> Suggestion | None:
        if not raw:
            return None
        return self._from_google(
            raw,
            label=None,
            score=PLACES_PRIOR,
            level=MatchLevel.PLACES,
            source=ProviderSource.GOOGLE_PLACES,
        )

    def from_tes(self, raw: Any) -> Suggestion | None:
        if not raw:
            return None
        score = _get(raw, "score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = TES_PRIOR
        level = _get(raw, "level")
        return Suggestion(
            full_address_label=_get(raw, "label") or None,
            street=_get(raw, "street") or None,
            house_number=_get(raw, "houseNumber") or None,
            postal_code=_get(raw, "postalCode") or None,
            city=_get(raw, "city") or None,
            country_code=_get(raw, "countryCode") or self.default_country,
            country_name=_get(raw, "country") or None,
            latitude=_coordinate(_get(raw, "latitude")),
            longitude=_coordinate(_get(raw, "longitude")),
            match_score=score,
            match_level=self._level(level, MatchLevel.TES),
            provider_source=ProviderSource.TES,
        )

    def normalize(self, raw: Any, shape: ProviderShape) -> Suggestion | None:
        """Map one raw item; unmappable items yield None."""
        try:
            mapper = self._mappers[ProviderShape(shape)]
        except (KeyError, ValueError):
            return None
        try:
            return mapper(raw)
        except (PydanticValidationError, TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed {shape} suggestion: {e}")
            return None

    def normalize_batch(self, items: Any, shape: ProviderShape) -> list[Suggestion]:
        if not isinstance(items, (list, tuple)):
            return []
        suggestions = (self.normalize(item, shape) for item in items)
        return [s for s in suggestions if s is not None]

    def _from_google(
        self,
        raw: Any,
        label: str | None,
        score: float,
        level: MatchLevel,
        source: ProviderSource,
    ) -> Suggestion:
        components = index_components(_get(raw, "address_components"))
        location = _get(_get(raw, "geometry"), "location")
        return Suggestion(
            full_address_label=label or None,
            street=components.get("route") or None,
            house_number=components.get("street_number") or None,
            postal_code=components.get("postal_code") or None,
            city=(
                components.get("locality")
                or components.get("postal_town")
                or components.get("administrative_area_level_2")
                or None
            ),
            country_code=components.get("country_code") or self.default_country,
            country_name=components.get("country") or None,
            latitude=_coordinate(_get(location, "lat")),
            longitude=_coordinate(_get(location, "lng")),
            match_score=score,
            match_level=level,
            provider_source=source,
        )

    @staticmethod
    def _level(value: Any, default: MatchLevel) -> MatchLevel:
        if not value:
            return default
        try:
            return MatchLevel(str(value).upper())
        except ValueError:
            return default
