"""
Date Normalizer — turns the DD-MM-YYYY text typed into the wizard into a
canonical calendar key.

Usage:
    d = normalize_date("25-12-2099")
    if d is not None:
        d.key   # "2099-12-25", sent to the marketplace API
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

_DATE_PATTERN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$", re.ASCII)
_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$", re.ASCII)


@dataclass(frozen=True, order=True)
class CanonicalDate:
    """A validated calendar date. Ordered and hashable."""

    value: date

    @property
    def key(self) -> str:
        return self.value.isoformat()

    @property
    def display(self) -> str:
        return self.value.strftime("%d-%m-%Y")

    def __str__(self) -> str:
        return self.key


def normalize_date(display: str | None, today: date | None = None) -> CanonicalDate | None:
    """
    Normalize a display date.

    Returns None when the text is not exactly DD-MM-YYYY, when it names a day
    that does not exist, or when the day is before ``today``. Today itself is
    accepted; time of day plays no part.
    """
    match = _DATE_PATTERN.match((display or "").strip())
    if not match:
        return None

    day, month, year = (int(part) for part in match.groups())
    try:
        value = date(year, month, day)
    except ValueError:
        return None

    if value < (today or date.today()):
        return None
    return CanonicalDate(value)


def normalize_time(display: str | None) -> str | None:
    """Return the HH:MM string for a valid 24h clock time, else None."""
    match = _TIME_PATTERN.match((display or "").strip())
    if not match:
        return None
    hours, minutes = (int(part) for part in match.groups())
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"
