"""Tests for country-configurable address validation."""

import re

from addressflow.address.models import CanonicalAddress
from addressflow.address.validator import AddressValidator, CountryRules


class TestAddressValidator:
    """Unit tests for AddressValidator."""

    def test_missing_street_is_reported(self):
        """Test a single missing required field."""
        result = AddressValidator().validate(
            {"street": "", "postal_code": "00-123", "city": "Warsaw", "country": "PL"}
        )

        assert result.valid is False
        assert result.errors == {"street": "street is required."}

    def test_valid_polish_address(self):
        """Test a complete Polish address passes."""
        address = CanonicalAddress(
            street="Main", house_number="10", postal_code="00-123", city="Warsaw", country="PL"
        )

        result = AddressValidator().validate(address)

        assert result.valid is True
        assert result.errors == {}

    def test_invalid_polish_postal_code(self):
        """Test the Polish postal pattern."""
        result = AddressValidator().validate(
            {"street": "Main", "postal_code": "00123", "city": "Warsaw", "country": "PL"}
        )

        assert result.errors == {"postal_code": "Invalid postal code format (expected XX-XXX)."}

    def test_missing_postal_code_reports_required_only(self):
        """Test the format check is skipped for a missing postal code."""
        result = AddressValidator().validate({"street": "Main", "city": "Warsaw", "country": "PL"})

        assert result.errors == {"postal_code": "postal_code is required."}

    def test_none_address(self):
        """Test a missing address object."""
        result = AddressValidator().validate(None)

        assert result.valid is False
        assert result.errors == {"general": "Address object is missing."}

    def test_unknown_country_only_checks_required_fields(self):
        """Test countries without rules accept any postal code."""
        result = AddressValidator().validate(
            {"street": "Unter den Linden", "postal_code": "abc", "city": "Berlin", "country": "DE"}
        )

        assert result.valid is True

    def test_camel_case_mapping(self):
        """Test camelCase keys are read."""
        result = AddressValidator().validate(
            {"street": "Main", "postalCode": "00-123", "city": "Warsaw", "country": "PL"}
        )

        assert result.valid is True

    def test_custom_rules(self):
        """Test configured required fields and pattern per country."""
        rules = {
            "NL": CountryRules(
                required=("street", "house_number", "postal_code", "city", "country"),
                postal_pattern=re.compile(r"^\d{4} ?[A-Z]{2}$"),
                postal_message="Invalid Dutch postal code.",
            )
        }
        validator = AddressValidator(rules=rules, default_country="NL")

        result = validator.validate(
            {"street": "Damrak", "postal_code": "1012", "city": "Amsterdam", "country": "nl"}
        )

        assert result.errors == {
            "house_number": "house_number is required.",
            "postal_code": "Invalid Dutch postal code.",
        }
