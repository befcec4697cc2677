"""
Purchase Session — the ticket purchase dialog of one concert.

Zone + quantity + referral verdict feed the pricing calculator; purchase()
asks the marketplace to validate the intent before buying. The buyer is
injected by the caller instead of being read from a global session.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from concertdesk.core import pricing
from concertdesk.core.errors import describe_error
from concertdesk.core.pricing import MAX_TICKETS_PER_PURCHASE, PriceQuote
from concertdesk.core.referral import ReferralCodeField, ReferralValidator
from concertdesk.core.schemas import Concert, ConcertZone, PurchaseIntent, PurchaseResult
from concertdesk.integrations.base import MarketplaceApi

logger = logging.getLogger(__name__)


class PurchaseSession:
    def __init__(
        self,
        api: MarketplaceApi,
        concert: Concert,
        buyer_id: str,
        max_quantity: int = MAX_TICKETS_PER_PURCHASE,
    ):
        self.api = api
        self.concert = concert
        self.buyer_id = buyer_id
        self.max_quantity = max_quantity
        self.referral = ReferralCodeField(ReferralValidator(api))
        self.zone_name: str | None = None
        self.quantity = 1
        self.error: str | None = None
        self.purchasing = False
        self.result: PurchaseResult | None = None

    @property
    def zone(self) -> ConcertZone | None:
        return self.concert.zone(self.zone_name) if self.zone_name else None

    def select_zone(self, zone_name: str) -> bool:
        if self.concert.zone(zone_name) is None:
            return False
        self.zone_name = zone_name
        return True

    def set_quantity(self, quantity: int) -> bool:
        """Whole numbers in 1..max_quantity only; anything else is ignored."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            return False
        if not 1 <= quantity <= self.max_quantity:
            return False
        self.quantity = quantity
        return True

    def set_referral_code(self, code: str) -> None:
        self.referral.set_code(code)

    async def commit_referral_code(self) -> None:
        await self.referral.commit()

    @property
    def quote(self) -> PriceQuote | None:
        zone = self.zone
        if zone is None:
            return None
        return pricing.quote(
            zone.price,
            self.quantity,
            self.referral.verdict,
            max_quantity=self.max_quantity,
        )

    @property
    def computed_total(self) -> Decimal | None:
        q = self.quote
        return q.total if q else None

    def build_intent(self) -> PurchaseIntent | None:
        if self.zone is None or not self.buyer_id:
            return None
        return PurchaseIntent(
            concert_id=self.concert.id,
            zone_id=self.zone.name,
            quantity=self.quantity,
            buyer_id=self.buyer_id,
            referral_code=self.referral.applied_code,
        )

    async def purchase(self) -> PurchaseResult | None:
        """Validate then buy. Failures set ``error`` and keep the dialog state."""
        if self.purchasing:
            return None
        intent = self.build_intent()
        if intent is None:
            return None

        self.purchasing = True
        self.error = None
        try:
            check = await self.api.validate_purchase(intent)
            if not check.is_valid:
                self.error = check.message or "Purchase is not valid"
                return None
            result = await self.api.purchase_tickets(intent)
        except Exception as e:
            logger.error("Ticket purchase failed for concert %s: %s", intent.concert_id, e)
            self.error = describe_error(e) or "Purchase failed"
            return None
        finally:
            self.purchasing = False

        if not result.success:
            self.error = result.message or "Purchase failed"
            return None

        logger.info(
            "Purchased %d ticket(s) for concert %s zone %s",
            intent.quantity,
            intent.concert_id,
            intent.zone_id,
        )
        self.result = result
        return result

    def dismiss_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        self.zone_name = None
        self.quantity = 1
        self.referral.clear()
        self.error = None
        self.result = None
