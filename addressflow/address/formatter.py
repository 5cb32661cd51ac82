"""Display and query strings for addresses."""

from typing import Any

from addressflow.address.models import read_field


class AddressFormatter:
    """Formats address-like records without mutating them."""

    def __init__(self, default_country: str = "PL") -> None:
        self.default_country = default_country

    def one_line(self, address: Any) -> str:
        if address is None:
            return ""
        parts = []
        line1 = self._street_line(address)
        if line1:
            parts.append(line1)
        line2 = self._locality_line(address)
        if line2:
            parts.append(line2)
        country = read_field(address, "country") or self.default_country
        if country:
            parts.append(str(country))
        return ", ".join(parts)

    def two_lines(self, address: Any) -> tuple[str, str]:
        if address is None:
            return "", ""
        country = read_field(address, "country") or self.default_country
        line2 = ", ".join(p for p in (self._locality_line(address), country) if p)
        return self._street_line(address), line2

    def free_text(self, address: Any) -> str:
        """Query string sent to free-text suggestion providers."""
        line1 = self._street_line(address)
        return f"{line1}, {self._locality_line(address)}".strip(" ,")

    @staticmethod
    def _street_line(address: Any) -> str:
        street = read_field(address, "street")
        number = read_field(address, "house_number")
        return " ".join(str(p) for p in (street, number) if p).strip()

    @staticmethod
    def _locality_line(address: Any) -> str:
        postal = read_field(address, "postal_code")
        city = read_field(address, "city")
        return " ".join(str(p) for p in (postal, city) if p).strip()
