"""Address fragment normalization.

Turns raw, incrementally typed address input into a CanonicalAddress. The
transformation is pure and total: any input, including None or junk values,
yields a canonical record, and normalizing a canonical record again returns it
unchanged.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from addressflow.address.models import CanonicalAddress, read_field

_WHITESPACE = re.compile(r"\s+")
_POSTAL_SEPARATORS = re.compile(r"[\s-]+")

# Digit group sizes of the postal code per country, joined with "-"
DEFAULT_POSTAL_LAYOUTS: dict[str, tuple[int, ...]] = {
    "PL": (2, 3),
}


class AddressNormalizer:
    """Normalizes address fragments into canonical addresses."""

    def __init__(
        self,
        default_country: str = "PL",
        postal_layouts: Mapping[str, tuple[int, ...]] | None = None,
    ) -> None:
        self.default_country = (default_country or "PL").strip().upper() or "PL"
        layouts = DEFAULT_POSTAL_LAYOUTS if postal_layouts is None else postal_layouts
        self.postal_layouts = {k.upper(): tuple(v) for k, v in layouts.items()}

    def normalize(self, fragment: Any) -> CanonicalAddress:
        """Normalize a raw fragment.

        Args:
            fragment: Mapping, AddressFragment, CanonicalAddress or None

        Returns:
            Canonical address with every field present
        """
        country = self._country(read_field(fragment, "country"))
        return CanonicalAddress(
            street=self._collapse(read_field(fragment, "street")),
            house_number=self._house_number(read_field(fragment, "house_number")),
            postal_code=self._postal_code(read_field(fragment, "postal_code"), country),
            city=self._capitalize(self._collapse(read_field(fragment, "city"))),
            country=country,
            latitude=self._coordinate(read_field(fragment, "latitude")),
            longitude=self._coordinate(read_field(fragment, "longitude")),
        )

    @staticmethod
    def _collapse(value: Any) -> str:
        if value is None:
            return ""
        return _WHITESPACE.sub(" ", str(value)).strip()

    @staticmethod
    def _house_number(value: Any) -> str | None:
        if value is None:
            return None
        compact = _WHITESPACE.sub("", str(value))
        return compact or None

    @staticmethod
    def _capitalize(value: str) -> str:
        # Only the first character; "nowy Sącz" keeps its inner casing
        return value[:1].upper() + value[1:]

    def _country(self, value: Any) -> str:
        code = self._collapse(value).upper()
        return code or self.default_country

    def _postal_code(self, value: Any, country: str) -> str:
        text = self._collapse(value)
        layout = self.postal_layouts.get(country)
        if not layout:
            return text
        raw = _POSTAL_SEPARATORS.sub("", text)
        if not (raw.isascii() and raw.isdigit()) or len(raw) != sum(layout):
            return text
        groups = []
        start = 0
        for size in layout:
            groups.append(raw[start : start + size])
            start += size
        return "-".join(groups)

    @staticmethod
    def _coordinate(value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None
