"""Provider capability interfaces and the geopy-backed geocoder variant."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim

from addressflow.address.models import CanonicalAddress, GeocodeResult
from addressflow.core.errors import ProviderError
from addressflow.suggestions.models import ProviderShape, ProviderSource

logger = logging.getLogger(__name__)


class GeocodeProvider(ABC):
    """Resolves a canonical address to coordinates."""

    source: ProviderSource = ProviderSource.OTHER

    @abstractmethod
    async def geocode_address(self, address: CanonicalAddress) -> GeocodeResult | None:
        """Geocode an address.

        Args:
            address: Normalized address to resolve

        Returns:
            The geocode result, or None when the provider found nothing

        Raises:
            ProviderError: On transport or provider failure
        """

    async def aclose(self) -> None:
        """Release provider resources."""


class SuggestionProvider(ABC):
    """Looks up candidate addresses for a free-text query."""

    shape: ProviderShape

    @abstractmethod
    async def suggest(self, free_text: str, country_code: str) -> list[Any]:
        """Return raw suggestion payloads, possibly empty.

        Args:
            free_text: Query such as ``"Main 10, 00-123 Warsaw"``
            country_code: ISO country code restricting the lookup

        Returns:
            Raw items in this provider's ``shape``
        """

    async def suggest_for(self, address: CanonicalAddress, free_text: str) -> list[Any]:
        """Suggestions for a normalized address.

        Providers that accept structured input override this; the default
        runs the free-text query restricted to the address country.
        """
        return await self.suggest(free_text, address.country)

    async def aclose(self) -> None:
        """Release provider resources."""


class NominatimGeocodeProvider(GeocodeProvider):
    """OpenStreetMap Nominatim geocoder.

    geopy's geocoders are synchronous, so lookups run in a worker thread to
    keep the event loop responsive while a user is typing.
    """

    source = ProviderSource.NOMINATIM

    def __init__(
        self,
        user_agent: str = "addressflow",
        timeout: int = 10,
        domain: str | None = None,
        geocoder: Any = None,
    ) -> None:
        if geocoder is None:
            kwargs: dict[str, Any] = {"user_agent": user_agent, "timeout": timeout}
            if domain:
                kwargs["domain"] = domain
            geocoder = Nominatim(**kwargs)
        self.geocoder = geocoder
        logger.info(f"Nominatim geocoder initialized (timeout {timeout}s)")

    @staticmethod
    def build_query(address: CanonicalAddress) -> dict[str, str]:
        """Structured Nominatim query for an address."""
        street = " ".join(p for p in (address.house_number, address.street) if p)
        query = {
            "street": street,
            "city": address.city,
            "postalcode": address.postal_code,
            "country": address.country,
        }
        return {k: v for k, v in query.items() if v}

    async def geocode_address(self, address: CanonicalAddress) -> GeocodeResult | None:
        query = self.build_query(address)
        if not query:
            return None

        try:
            location = await asyncio.to_thread(
                self.geocoder.geocode,
                query,
                exactly_one=True,
                addressdetails=True,
                country_codes=address.country.lower(),
            )
        except GeocoderTimedOut as e:
            logger.warning(f"Nominatim timed out for {query}: {e}")
            raise ProviderError(str(e), provider=self.source.value) from e
        except (GeocoderUnavailable, GeocoderServiceError) as e:
            # Quota/rate-limit subclasses keep their type for the retry policy
            logger.warning(f"Nominatim error for {query}: {e}")
            raise

        if location is None:
            logger.debug(f"Nominatim found nothing for {query}")
            return None
        return self.to_result(location)

    def to_result(self, location: Any) -> GeocodeResult:
        raw = getattr(location, "raw", None) or {}
        details = raw.get("address") or {}
        country_code = details.get("country_code")
        confidence = raw.get("importance")
        return GeocodeResult(
            latitude=location.latitude,
            longitude=location.longitude,
            formatted_address=getattr(location, "address", None),
            street=details.get("road"),
            house_number=details.get("house_number"),
            postal_code=details.get("postcode"),
            city=details.get("city") or details.get("town") or details.get("village"),
            country_code=country_code.upper() if country_code else None,
            confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
            provider=self.source.value,
        )
