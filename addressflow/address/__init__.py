"""Address normalization, validation and comparison."""

from addressflow.address.equality import AddressEquality, FieldChange, rolling_hash
from addressflow.address.formatter import AddressFormatter
from addressflow.address.models import (
    AddressFragment,
    CanonicalAddress,
    GeocodeResult,
    ValidationResult,
)
from addressflow.address.normalizer import AddressNormalizer
from addressflow.address.validator import AddressValidator, CountryRules

__all__ = [
    "AddressEquality",
    "AddressFormatter",
    "AddressFragment",
    "AddressNormalizer",
    "AddressValidator",
    "CanonicalAddress",
    "CountryRules",
    "FieldChange",
    "GeocodeResult",
    "ValidationResult",
    "rolling_hash",
]
