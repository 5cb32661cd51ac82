"""Session-scoped in-memory cache of geocoding results."""

import logging
import math
from collections import OrderedDict
from typing import Any

from addressflow.address.equality import AddressEquality
from addressflow.address.models import GeocodeResult
from addressflow.core.metrics import GEOCODE_CACHE_LOOKUPS

logger = logging.getLogger(__name__)


def has_finite_coordinates(result: GeocodeResult | None) -> bool:
    if result is None:
        return False
    return all(
        isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
        for v in (result.latitude, result.longitude)
    )


class GeocodeCache:
    """Maps the identifying hash of an address to its last good geocode.

    ``max_entries=0`` keeps every entry for the lifetime of the session;
    a positive bound evicts the least recently used entry.
    """

    def __init__(
        self, equality: AddressEquality | None = None, max_entries: int = 0
    ) -> None:
        self.equality = equality or AddressEquality()
        self.max_entries = max(0, max_entries)
        self._entries: OrderedDict[str, GeocodeResult] = OrderedDict()

    def key(self, address: Any) -> str:
        return self.equality.hash(address)

    def get(self, address: Any) -> GeocodeResult | None:
        key = self.key(address)
        result = self._entries.get(key)
        if result is None:
            GEOCODE_CACHE_LOOKUPS.labels(result="miss").inc()
            return None
        self._entries.move_to_end(key)
        GEOCODE_CACHE_LOOKUPS.labels(result="hit").inc()
        logger.debug(f"Geocode cache hit for key: {key}")
        return result

    def put(self, address: Any, result: GeocodeResult | None) -> bool:
        """Store a result; partial or empty geocodes are refused."""
        if not has_finite_coordinates(result):
            return False
        key = self.key(address)
        self._entries[key] = result
        self._entries.move_to_end(key)
        if self.max_entries and len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Geocode cache evicted key: {evicted}")
        logger.debug(f"Geocode cache set for key: {key}")
        return True

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: Any) -> bool:
        return self.key(address) in self._entries
