"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from concertdesk.core.schemas import Performer, Venue, VenueZone
from concertdesk.integrations.base import MarketplaceApi

TODAY = date(2026, 10, 18)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def make_venue():
    def _make(venue_id: str, zones: tuple[tuple[str, int], ...] = (("A", 100), ("B", 50))) -> Venue:
        return Venue(
            id=venue_id,
            name=f"Arena {venue_id}",
            location="Downtown",
            total_capacity=sum(c for _, c in zones),
            zones=[VenueZone(name=n, capacity=c) for n, c in zones],
        )

    return _make


@pytest.fixture
def make_performer():
    def _make(performer_id: str, genre: str = "rock") -> Performer:
        return Performer(id=performer_id, name=f"Artist {performer_id}", genre=genre)

    return _make


@pytest.fixture
def api(make_venue, make_performer) -> AsyncMock:
    mock = AsyncMock(spec=MarketplaceApi)
    mock.fetch_venues_for_date.return_value = [make_venue("arena-1"), make_venue("arena-2", (("Floor", 300),))]
    mock.fetch_performers_for_date.return_value = [make_performer("artist-1"), make_performer("artist-2")]
    return mock
