"""Provider-agnostic suggestion model."""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ProviderSource(str, Enum):
    """Backend that produced a suggestion."""

    GOOGLE_CLIENT = "GOOGLE_CLIENT"
    GOOGLE_PLACES = "GOOGLE_PLACES"
    TES = "TES"
    NOMINATIM = "NOMINATIM"
    OTHER = "OTHER"


class ProviderShape(str, Enum):
    """Raw payload layout a suggestion was mapped from."""

    GEOCODER = "GEOCODER"
    PLACES = "PLACES"
    TES = "TES"


class MatchLevel(str, Enum):
    """How the suggestion was matched against the typed address."""

    GEOCODER = "GEOCODER"
    PLACES = "PLACES"
    TES = "TES"
    OTHER = "OTHER"


# Tie-break order used by the ranker, higher wins
PROVIDER_PRIORITY: dict[ProviderSource, int] = {
    ProviderSource.GOOGLE_CLIENT: 3,
    ProviderSource.GOOGLE_PLACES: 2,
    ProviderSource.TES: 1,
}

# The geocoder-backed instant suggestion outranks every provider on ties
INSTANT_PRIORITY = max(PROVIDER_PRIORITY.values()) + 1


class Suggestion(BaseModel):
    """Candidate address with a heuristic confidence score."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    full_address_label: str | None = None
    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country_code: str | None = None
    country_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    match_score: float = 0.0
    match_level: MatchLevel = MatchLevel.OTHER
    provider_source: ProviderSource = ProviderSource.OTHER
    instant: bool = False

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> float:
        """Clamp the score into [0, 1]; unusable values score 0."""
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(score):
            return 0.0
        return min(1.0, max(0.0, score))

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def finite_coordinate(cls, value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @property
    def priority(self) -> int:
        if self.instant:
            return INSTANT_PRIORITY
        return PROVIDER_PRIORITY.get(self.provider_source, 0)

    @property
    def country(self) -> str | None:
        """Alias read by the equality service's identifying fields."""
        return self.country_code
