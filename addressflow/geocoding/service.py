"""Cached, throttled and quota-aware geocoding.

This module wires the geocode cache, the concurrency-limited queue and the
quota retry policy around a single GeocodeProvider:
- Identical addresses hit the provider once per session
- Bursts of lookups are throttled to the queue's concurrency
- Quota and rate-limit rejections are retried with backoff
"""

import logging
from typing import Any

from addressflow.address.models import CanonicalAddress, GeocodeResult
from addressflow.address.normalizer import AddressNormalizer
from addressflow.core.errors import ConfigurationError
from addressflow.geocoding.cache import GeocodeCache
from addressflow.geocoding.providers import GeocodeProvider
from addressflow.geocoding.retry import RetryPolicy
from addressflow.scheduling.queue import ConcurrencyLimitedQueue
from addressflow.suggestions.models import ProviderSource

logger = logging.getLogger(__name__)


class GeocodeService:
    """Geocoding with a session cache in front of a provider."""

    def __init__(
        self,
        provider: GeocodeProvider | None,
        cache: GeocodeCache | None = None,
        retry_policy: RetryPolicy | None = None,
        queue: ConcurrencyLimitedQueue | None = None,
        normalizer: AddressNormalizer | None = None,
    ) -> None:
        if provider is None:
            raise ConfigurationError("GeocodeService requires a geocode provider")
        self.provider = provider
        self.cache = cache if cache is not None else GeocodeCache()
        self.retry_policy = retry_policy or RetryPolicy()
        self.queue = queue or ConcurrencyLimitedQueue()
        self.normalizer = normalizer or AddressNormalizer()

    @property
    def source(self) -> ProviderSource:
        return self.provider.source

    async def geocode(self, address: Any) -> GeocodeResult | None:
        """Geocode an address, consulting the cache first.

        Args:
            address: CanonicalAddress or any raw address fragment

        Returns:
            The geocode result, or None when the provider found nothing

        Raises:
            Exception: Provider errors once retries are exhausted
        """
        canonical = (
            address
            if isinstance(address, CanonicalAddress)
            else self.normalizer.normalize(address)
        )
        cached = self.cache.get(canonical)
        if cached is not None:
            return cached

        result = await self.queue.enqueue(
            lambda: self.retry_policy.execute(
                lambda: self.provider.geocode_address(canonical)
            )
        )
        if result is not None and not self.cache.put(canonical, result):
            logger.debug("Geocode result without finite coordinates was not cached")
        return result
