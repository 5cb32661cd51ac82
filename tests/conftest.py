"""Test configuration."""

import asyncio
from pathlib import Path
from typing import Any

import pytest
from pytest import Config

from addressflow.address.models import CanonicalAddress, GeocodeResult
from addressflow.core.config import Settings
from addressflow.core.logging import configure_logging
from addressflow.geocoding.providers import GeocodeProvider, SuggestionProvider
from addressflow.suggestions.models import ProviderShape, ProviderSource

fixture = pytest.fixture


class FakeGeocodeProvider(GeocodeProvider):
    """Geocoder returning canned results and recording its calls."""

    source = ProviderSource.GOOGLE_CLIENT

    def __init__(
        self,
        result: GeocodeResult | None = None,
        errors: list[Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.result = result
        self.errors = list(errors or [])
        self.delay = delay
        self.calls: list[CanonicalAddress] = []

    async def geocode_address(self, address: CanonicalAddress) -> GeocodeResult | None:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class FakeSuggestionProvider(SuggestionProvider):
    """Suggestion provider returning canned raw items."""

    def __init__(
        self,
        items: list[Any] | None = None,
        shape: ProviderShape = ProviderShape.TES,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.items = items or []
        self.shape = shape
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def suggest(self, free_text: str, country_code: str) -> list[Any]:
        self.calls.append((free_text, country_code))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.items)


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@fixture
def test_settings() -> Settings:
    """Settings with fast timings and no network providers."""
    return Settings(
        GEOCODING_PROVIDER="none",
        TES_BASE_URL=None,
        DEBOUNCE_SECONDS=0.01,
        RETRY_BASE_DELAY=0.0,
        RETRY_JITTER=0.0,
        _env_file=None,
    )


@fixture
def warsaw_geocode() -> GeocodeResult:
    return GeocodeResult(
        latitude=52.2297,
        longitude=21.0122,
        formatted_address="Marszałkowska 10, 00-123 Warszawa, Polska",
        provider="fake",
    )


@fixture
def geocode_provider(warsaw_geocode: GeocodeResult) -> FakeGeocodeProvider:
    return FakeGeocodeProvider(result=warsaw_geocode)


@fixture
def make_geocoder() -> type[FakeGeocodeProvider]:
    """Factory for geocoders with custom results, errors or delays."""
    return FakeGeocodeProvider


@fixture
def make_suggester() -> type[FakeSuggestionProvider]:
    """Factory for suggestion providers with custom payloads."""
    return FakeSuggestionProvider


@fixture
def valid_fragment() -> dict[str, Any]:
    return {
        "street": "Marszałkowska",
        "houseNumber": "10",
        "postalCode": "00123",
        "city": "warszawa",
        "country": "pl",
    }


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
