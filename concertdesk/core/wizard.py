"""
Concert Creation Wizard — five-step state machine that builds a concert draft.

Steps:
    0 DETAILS     description, date (DD-MM-YYYY), start time
    1 VENUE       one venue free on the chosen date
    2 PRICING     a positive price for every zone of that venue
    3 PERFORMERS  at least one performer free on the date
    4 REVIEW      submit

advance() and submit() are no-ops while the current step is not ready.
Collaborator failures never escape: they land in ``wizard.error`` and the
draft is left untouched so the organizer can retry. Selections are only
reconciled against option sets that actually loaded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from enum import IntEnum

from concertdesk.core import zone_pricing
from concertdesk.core.dates import CanonicalDate, normalize_date, normalize_time
from concertdesk.core.errors import describe_error
from concertdesk.core.options import DependentOptionLoader, LoadState, OptionSet
from concertdesk.core.schemas import Collaboration, ConcertSubmission, Venue
from concertdesk.core.zone_pricing import ZonePriceEntry
from concertdesk.integrations.base import MarketplaceApi

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    DETAILS = 0
    VENUE = 1
    PRICING = 2
    PERFORMERS = 3
    REVIEW = 4

    @property
    def label(self) -> str:
        return STEP_LABELS[self]


STEP_LABELS = {
    WizardStep.DETAILS: "Concert Details",
    WizardStep.VENUE: "Venue Selection",
    WizardStep.PRICING: "Zone Pricing",
    WizardStep.PERFORMERS: "Performer Selection",
    WizardStep.REVIEW: "Review & Confirm",
}


@dataclass
class ConcertDraft:
    """In-progress concert. Mutated only through ConcertWizard setters."""

    title: str = ""
    description: str = ""
    date_input: str = ""
    date: CanonicalDate | None = None
    time: str = ""
    venue: Venue | None = None
    zone_prices: list[ZonePriceEntry] = field(default_factory=list)
    performer_ids: list[str] = field(default_factory=list)
    collaborations: list[tuple[str, str]] = field(default_factory=list)


class ConcertWizard:
    """
    Owns the draft, the current step and the option loader.

    Usage:
        wizard = ConcertWizard(api, organizer_id="org-1")
        wizard.set_description("Fall Tour")
        await wizard.set_date("25-12-2099")
        wizard.set_time("20:00")
        wizard.advance()
    """

    def __init__(
        self,
        api: MarketplaceApi,
        organizer_id: str | None = None,
        today: date_type | None = None,
    ):
        self.api = api
        self.organizer_id = organizer_id
        self._today = today
        self.loader = DependentOptionLoader(
            api,
            on_venues_changed=self._on_venues_changed,
            on_performers_changed=self._on_performers_changed,
        )
        self.draft = ConcertDraft()
        self.current_step = WizardStep.DETAILS
        self.error: str | None = None
        self.submitting = False
        self.is_open = True
        self.created_concert_id: str | None = None

    # --- Option sets ---

    @property
    def venues(self) -> OptionSet:
        return self.loader.venues

    @property
    def performers(self) -> OptionSet:
        return self.loader.performers

    async def retry_options(self) -> None:
        self.error = None
        await self.loader.retry()

    # --- Setters ---

    def set_title(self, title: str) -> None:
        self.draft.title = title

    def set_description(self, description: str) -> None:
        self.draft.description = description

    def set_time(self, time: str) -> None:
        self.draft.time = time

    async def set_date(self, display: str) -> None:
        """
        Store the typed date and, when it names a new valid day, reload the
        venue and performer options for it.
        """
        self.draft.date_input = display
        canonical = normalize_date(display, self._today)
        if canonical == self.draft.date:
            return

        self.draft.date = canonical
        if canonical is None:
            self.loader.invalidate()
            self._clear_venue()
            self.draft.performer_ids = []
            self.draft.collaborations = []
            return

        await self.loader.load(canonical)

    def select_venue(self, venue_id: str) -> bool:
        """Select a venue from the loaded set. Re-selecting the current venue keeps its prices."""
        venue = self.venues.get(venue_id)
        if venue is None:
            return False
        if self.draft.venue is not None and self.draft.venue.id == venue.id:
            return True
        self.draft.venue = venue
        self.draft.zone_prices = zone_pricing.configure(venue)
        return True

    def set_zone_price(self, zone_name: str, raw_input: str) -> list[ZonePriceEntry]:
        self.draft.zone_prices = zone_pricing.set_price(self.draft.zone_prices, zone_name, raw_input)
        return self.draft.zone_prices

    def toggle_performer(self, performer_id: str) -> bool:
        """Add or remove a performer. Unknown performers cannot be added."""
        if performer_id in self.draft.performer_ids:
            self.draft.performer_ids = [p for p in self.draft.performer_ids if p != performer_id]
            self._prune_collaborations()
            return True
        if not self.performers.contains(performer_id):
            return False
        self.draft.performer_ids = [*self.draft.performer_ids, performer_id]
        return True

    def add_collaboration(self, performer_id: str, collaborator_id: str) -> bool:
        """Pair two selected performers for a joint performance."""
        selected = self.draft.performer_ids
        if performer_id == collaborator_id or performer_id not in selected or collaborator_id not in selected:
            return False
        pair = {performer_id, collaborator_id}
        if any(set(existing) == pair for existing in self.draft.collaborations):
            return False
        self.draft.collaborations = [*self.draft.collaborations, (performer_id, collaborator_id)]
        return True

    def remove_collaboration(self, index: int) -> bool:
        if not 0 <= index < len(self.draft.collaborations):
            return False
        self.draft.collaborations = [c for i, c in enumerate(self.draft.collaborations) if i != index]
        return True

    def dismiss_error(self) -> None:
        self.error = None

    # --- Readiness ---

    def step_ready(self, step: WizardStep | int) -> bool:
        step = WizardStep(step)
        d = self.draft
        if step == WizardStep.DETAILS:
            return (
                bool(d.description.strip())
                and normalize_date(d.date_input, self._today) is not None
                and normalize_time(d.time) is not None
            )
        if step == WizardStep.VENUE:
            return d.venue is not None
        if step == WizardStep.PRICING:
            return zone_pricing.all_priced(d.zone_prices)
        if step == WizardStep.PERFORMERS:
            return len(d.performer_ids) > 0
        return True

    @property
    def current_step_ready(self) -> bool:
        return self.step_ready(self.current_step)

    @property
    def can_submit(self) -> bool:
        return self.current_step == WizardStep.REVIEW and all(self.step_ready(s) for s in WizardStep)

    # --- Transitions ---

    def advance(self) -> bool:
        if self.current_step == WizardStep.REVIEW or not self.step_ready(self.current_step):
            return False
        self.current_step = WizardStep(self.current_step + 1)
        return True

    def retreat(self) -> bool:
        if self.current_step == WizardStep.DETAILS:
            return False
        self.current_step = WizardStep(self.current_step - 1)
        return True

    def reset(self) -> None:
        self.current_step = WizardStep.DETAILS
        self.draft = ConcertDraft()
        self.loader.invalidate()
        self.error = None

    def close(self) -> None:
        """Discard the draft and leave the wizard (close or cancel)."""
        self.reset()
        self.is_open = False

    cancel = close

    async def submit(self) -> str | None:
        """
        Create the concert. Returns the new concert id, or None when the
        wizard is not ready or the collaborator rejected the draft.
        """
        if self.submitting or not self.can_submit:
            return None

        submission = self.to_submission()
        self.submitting = True
        self.error = None
        try:
            created = await self.api.submit_concert(submission)
        except Exception as e:
            logger.error("Concert submission failed: %s", e)
            self.error = describe_error(e) or "Failed to create concert"
            return None
        finally:
            self.submitting = False

        logger.info("Concert created: id=%s venue=%s date=%s", created.id, submission.venue_id, submission.date)
        self.created_concert_id = created.id
        self.close()
        return created.id

    def to_submission(self) -> ConcertSubmission:
        d = self.draft
        return ConcertSubmission(
            organizer_id=self.organizer_id,
            title=d.title.strip(),
            description=d.description.strip(),
            date=d.date.key if d.date else "",
            time=normalize_time(d.time) or d.time,
            venue_id=d.venue.id if d.venue else "",
            zones=[e.to_zone_price() for e in d.zone_prices],
            performer_ids=list(d.performer_ids),
            collaborations=[Collaboration(artist1=a, artist2=b) for a, b in d.collaborations],
        )

    # --- Reactions to reloaded option sets ---

    def _on_venues_changed(self, venues: OptionSet) -> None:
        if venues.state == LoadState.FAILED:
            self.error = venues.error
            return
        venue = self.draft.venue
        if venue is not None and not venues.contains(venue.id):
            logger.info("Venue %s not available on %s, clearing selection", venue.id, venues.date)
            self._clear_venue()

    def _on_performers_changed(self, performers: OptionSet) -> None:
        if performers.state == LoadState.FAILED:
            self.error = performers.error
            return
        kept = [p for p in self.draft.performer_ids if performers.contains(p)]
        if kept != self.draft.performer_ids:
            logger.info(
                "Dropping %d performer(s) not available on %s",
                len(self.draft.performer_ids) - len(kept),
                performers.date,
            )
            self.draft.performer_ids = kept
            self._prune_collaborations()

    def _clear_venue(self) -> None:
        self.draft.venue = None
        self.draft.zone_prices = []

    def _prune_collaborations(self) -> None:
        selected = set(self.draft.performer_ids)
        self.draft.collaborations = [
            (a, b) for a, b in self.draft.collaborations if a in selected and b in selected
        ]
