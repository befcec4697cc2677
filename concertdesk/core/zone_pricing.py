"""
Zone Pricing Configurator — one price entry per zone of the selected venue.

The raw text typed by the organizer is kept next to the parsed price, so an
empty or half-typed field ("", "12.") is not rewritten to "0" while typing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

from concertdesk.core.schemas import Venue, ZonePrice

_DECIMAL_PATTERN = re.compile(r"^\d*\.?\d*$", re.ASCII)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ZonePriceEntry:
    zone_name: str
    capacity: int
    price: Decimal = ZERO
    raw_input: str = ""

    @property
    def is_priced(self) -> bool:
        return self.price > 0

    def to_zone_price(self) -> ZonePrice:
        return ZonePrice(zone_name=self.zone_name, capacity_per_zone=self.capacity, price=self.price)


def configure(venue: Venue) -> list[ZonePriceEntry]:
    """Fresh entries for every zone of ``venue``, in venue order, unpriced."""
    return [ZonePriceEntry(zone_name=z.name, capacity=z.capacity) for z in venue.zones]


def parse_price(raw_input: str) -> Decimal:
    """Parse a non-negative decimal; anything else counts as zero."""
    text = (raw_input or "").strip()
    if not text or text == "." or not _DECIMAL_PATTERN.match(text):
        return ZERO
    try:
        value = Decimal(text)
    except InvalidOperation:
        return ZERO
    return value if value.is_finite() and value >= 0 else ZERO


def set_price(entries: list[ZonePriceEntry], zone_name: str, raw_input: str) -> list[ZonePriceEntry]:
    """Return a new entry list with ``zone_name`` repriced. Unknown zones change nothing."""
    price = parse_price(raw_input)
    return [
        replace(e, price=price, raw_input=raw_input) if e.zone_name == zone_name else e
        for e in entries
    ]


def all_priced(entries: list[ZonePriceEntry]) -> bool:
    """Zero is a legal value while editing but not for submission."""
    return bool(entries) and all(e.is_priced for e in entries)


def total_capacity(entries: list[ZonePriceEntry]) -> int:
    return sum(e.capacity for e in entries)


def potential_revenue(entries: list[ZonePriceEntry]) -> Decimal:
    """Gross takings if every seat sells at its zone price."""
    return sum((e.price * e.capacity for e in entries), ZERO)
