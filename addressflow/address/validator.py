"""Country-configurable validation rules for canonical addresses."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from addressflow.address.models import ValidationResult, read_field

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_FIELDS: tuple[str, ...] = ("street", "postal_code", "city", "country")


@dataclass(frozen=True)
class CountryRules:
    """Validation rules applied to addresses of one country."""

    required: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    postal_pattern: re.Pattern[str] | None = None
    postal_message: str = "Invalid postal code format."


DEFAULT_RULES: dict[str, CountryRules] = {
    "PL": CountryRules(
        postal_pattern=re.compile(r"^\d{2}-\d{3}$"),
        postal_message="Invalid postal code format (expected XX-XXX).",
    ),
}


@dataclass
class AddressValidator:
    """Validates canonical addresses without any network access.

    Rules are looked up by the address' own country code (the default country
    when it has none). Countries without an entry only get the required-field
    check.
    """

    rules: Mapping[str, CountryRules] = field(default_factory=lambda: dict(DEFAULT_RULES))
    default_country: str = "PL"

    def rules_for(self, country: str | None) -> CountryRules:
        code = (country or self.default_country).strip().upper()
        if code in self.rules:
            return self.rules[code]
        return CountryRules()

    def validate(self, address: Any) -> ValidationResult:
        """Validate an address.

        Args:
            address: CanonicalAddress or an address-like mapping

        Returns:
            ValidationResult with one message per offending field
        """
        if address is None:
            return ValidationResult(
                valid=False, errors={"general": "Address object is missing."}
            )

        rules = self.rules_for(read_field(address, "country"))
        errors: dict[str, str] = {}

        for name in rules.required:
            value = read_field(address, name)
            if value is None or str(value).strip() == "":
                errors[name] = f"{name} is required."

        postal_code = read_field(address, "postal_code")
        if (
            rules.postal_pattern is not None
            and postal_code
            and "postal_code" not in errors
            and not rules.postal_pattern.match(str(postal_code).strip())
        ):
            errors["postal_code"] = rules.postal_message

        if errors:
            logger.debug(f"Address failed validation: {sorted(errors)}")
        return ValidationResult(valid=not errors, errors=errors)
