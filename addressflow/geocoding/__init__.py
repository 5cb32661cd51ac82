"""Geocoding providers, cache and quota-aware resilience."""

from addressflow.geocoding.cache import GeocodeCache
from addressflow.geocoding.providers import (
    GeocodeProvider,
    NominatimGeocodeProvider,
    SuggestionProvider,
)
from addressflow.geocoding.retry import RetryPolicy, is_quota_error, with_quota_retry
from addressflow.geocoding.service import GeocodeService

__all__ = [
    "GeocodeCache",
    "GeocodeProvider",
    "GeocodeService",
    "NominatimGeocodeProvider",
    "RetryPolicy",
    "SuggestionProvider",
    "is_quota_error",
    "with_quota_retry",
]
