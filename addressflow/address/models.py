"""Address data models."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Fields that identify an address for equality, hashing and caching
IDENTIFYING_FIELDS: tuple[str, ...] = (
    "street",
    "house_number",
    "postal_code",
    "city",
    "country",
    "latitude",
    "longitude",
)


def read_field(source: Any, name: str) -> Any:
    """Read ``name`` from a mapping (snake_case or camelCase key) or an object.

    Args:
        source: Mapping, model or any object exposing the field as attribute
        name: snake_case field name

    Returns:
        The field value, or None when absent
    """
    if source is None:
        return None
    if isinstance(source, Mapping):
        if name in source:
            return source[name]
        return source.get(to_camel(name))
    return getattr(source, name, None)


class AddressFragment(BaseModel):
    """Raw, possibly incomplete address input as typed by a user."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    latitude: Any = None
    longitude: Any = None


class CanonicalAddress(BaseModel):
    """Normalized address record with guaranteed field presence."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    street: str = ""
    house_number: str | None = None
    postal_code: str = ""
    city: str = ""
    country: str = Field(default="PL", min_length=1)
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ValidationResult(BaseModel):
    """Outcome of validating a canonical address."""

    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class GeocodeResult(BaseModel):
    """Result returned by a geocoding provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    latitude: float | None = None
    longitude: float | None = None
    formatted_address: str | None = None
    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country_code: str | None = None
    confidence: float | None = None
    provider: str | None = None
