"""
Base Marketplace API — abstract interface for the remote marketplace service.

The engines in concertdesk.core only talk to this interface; the HTTP
implementation lives in concertdesk.integrations.marketplace. Every method
raises ApiError on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from concertdesk.core.dates import CanonicalDate
from concertdesk.core.schemas import (
    Concert,
    ConcertCreated,
    ConcertSubmission,
    Performer,
    PurchaseCheck,
    PurchaseIntent,
    PurchaseResult,
    ReferralVerdict,
    Venue,
)


class MarketplaceApi(ABC):
    """Collaborator consumed by the wizard and purchase engines."""

    @abstractmethod
    async def fetch_venues_for_date(self, date: CanonicalDate) -> list[Venue]:
        """Venues free on ``date``."""

    @abstractmethod
    async def fetch_performers_for_date(self, date: CanonicalDate) -> list[Performer]:
        """Performers free on ``date``."""

    @abstractmethod
    async def validate_referral_code(self, code: str) -> ReferralVerdict:
        """
        Check a referral code.

        An unknown or unusable code is not an error: it comes back as an
        invalid verdict with the server's reason.
        """

    @abstractmethod
    async def submit_concert(self, submission: ConcertSubmission) -> ConcertCreated:
        """Create a concert. Server-side validation rejections raise ApiError."""

    @abstractmethod
    async def fetch_concert(self, concert_id: str) -> Concert:
        """Concert with its priced zones."""

    @abstractmethod
    async def validate_purchase(self, intent: PurchaseIntent) -> PurchaseCheck:
        """Dry-run a purchase (availability, quantity, referral)."""

    @abstractmethod
    async def purchase_tickets(self, intent: PurchaseIntent) -> PurchaseResult:
        """Buy the tickets described by ``intent``."""
