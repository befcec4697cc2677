"""
Dependent Option Loader — date-scoped venue and performer option sets.

Each set moves IDLE -> LOADING -> LOADED | FAILED. Every load gets a
monotonically increasing token; a response is applied only while its token is
still the latest, so a slow answer for an earlier date can never overwrite the
option set of a date picked after it.

Usage:
    loader = DependentOptionLoader(api, on_venues_changed=wizard._on_venues_changed)
    await loader.load(canonical_date)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from concertdesk.core.dates import CanonicalDate
from concertdesk.core.errors import describe_error
from concertdesk.integrations.base import MarketplaceApi

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class OptionSet(Generic[T]):
    """Read-only snapshot of one option set. Items must expose ``.id``."""

    state: LoadState = LoadState.IDLE
    items: tuple[T, ...] = ()
    date: CanonicalDate | None = None
    error: str | None = None

    @property
    def ids(self) -> set[str]:
        return {item.id for item in self.items}  # type: ignore[attr-defined]

    def contains(self, item_id: str) -> bool:
        return item_id in self.ids

    def get(self, item_id: str) -> T | None:
        return next((item for item in self.items if item.id == item_id), None)  # type: ignore[attr-defined]


OnChanged = Callable[[OptionSet[Any]], None]


class DependentOptionLoader:
    """Fetches venues and performers for the draft's date."""

    def __init__(
        self,
        api: MarketplaceApi,
        on_venues_changed: OnChanged | None = None,
        on_performers_changed: OnChanged | None = None,
    ):
        self.api = api
        self.venues: OptionSet = OptionSet()
        self.performers: OptionSet = OptionSet()
        self._on_venues_changed = on_venues_changed
        self._on_performers_changed = on_performers_changed
        self._token = 0
        self._date: CanonicalDate | None = None

    @property
    def requested_date(self) -> CanonicalDate | None:
        return self._date

    @property
    def loading(self) -> bool:
        return LoadState.LOADING in (self.venues.state, self.performers.state)

    @property
    def failed(self) -> bool:
        return LoadState.FAILED in (self.venues.state, self.performers.state)

    async def load(self, date: CanonicalDate) -> None:
        """Fetch both sets for ``date``. Failures end in FAILED, never raise."""
        self._token += 1
        token = self._token
        self._date = date
        self.venues = OptionSet(state=LoadState.LOADING, date=date)
        self.performers = OptionSet(state=LoadState.LOADING, date=date)
        logger.debug("Loading options for %s (token=%s)", date, token)

        await asyncio.gather(
            self._load_set("venues", self.api.fetch_venues_for_date, date, token),
            self._load_set("performers", self.api.fetch_performers_for_date, date, token),
        )

    async def retry(self) -> None:
        """Re-issue the last load, e.g. after a failure."""
        if self._date is not None:
            await self.load(self._date)

    def invalidate(self) -> None:
        """Drop both sets and orphan any in-flight response."""
        self._token += 1
        self._date = None
        self.venues = OptionSet()
        self.performers = OptionSet()

    async def _load_set(
        self,
        name: str,
        fetch: Callable[[CanonicalDate], Awaitable[list[Any]]],
        date: CanonicalDate,
        token: int,
    ) -> None:
        try:
            items = await fetch(date)
        except Exception as e:
            if token != self._token:
                logger.debug("Discarding stale %s failure for %s", name, date)
                return
            logger.warning("Failed to load %s for %s: %s", name, date, e)
            result: OptionSet = OptionSet(
                state=LoadState.FAILED,
                date=date,
                error=describe_error(e) or f"Failed to load {name}",
            )
        else:
            if token != self._token:
                logger.debug("Discarding stale %s response for %s", name, date)
                return
            result = OptionSet(state=LoadState.LOADED, items=tuple(items), date=date)

        setattr(self, name, result)
        callback = self._on_venues_changed if name == "venues" else self._on_performers_changed
        if callback is not None:
            callback(result)
