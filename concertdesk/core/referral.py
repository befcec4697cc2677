"""
Referral Code Validator.

ReferralValidator asks the marketplace about a code. ReferralCodeField is the
purchase dialog's input: editing the text drops the current verdict at once,
and validation only runs on an explicit commit (the field losing focus), never
per keystroke.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from concertdesk.core.errors import describe_error
from concertdesk.core.schemas import ReferralVerdict
from concertdesk.integrations.base import MarketplaceApi

logger = logging.getLogger(__name__)


class ReferralValidator:
    def __init__(self, api: MarketplaceApi):
        self.api = api

    async def validate(self, code: str | None) -> ReferralVerdict | None:
        """
        Validate a referral code.

        Returns None for a blank code without calling the API. A failed call
        comes back as an invalid verdict carrying the failure reason; there
        are no retries.
        """
        code = (code or "").strip()
        if not code:
            return None
        try:
            return await self.api.validate_referral_code(code)
        except Exception as e:
            logger.warning("Referral validation failed for %r: %s", code, e)
            return ReferralVerdict.invalid(describe_error(e) or "Failed to validate referral code")


class ReferralCodeField:
    """Referral code text plus the verdict for exactly that text."""

    def __init__(self, validator: ReferralValidator):
        self.validator = validator
        self.code = ""
        self.verdict: ReferralVerdict | None = None
        self.validating = False
        self._token = 0

    def set_code(self, code: str) -> None:
        if code == self.code:
            return
        self.code = code
        self.verdict = None
        self.validating = False
        # Orphans any validation still in flight for the previous text.
        self._token += 1

    async def commit(self) -> ReferralVerdict | None:
        """Validate the current text. A verdict for text edited meanwhile is dropped."""
        self._token += 1
        token = self._token
        code = self.code

        if not code.strip():
            self.verdict = None
            return None

        self.validating = True
        try:
            verdict = await self.validator.validate(code)
        finally:
            if token == self._token:
                self.validating = False

        if token != self._token:
            logger.debug("Discarding stale referral verdict for %r", code)
            return None

        self.verdict = verdict
        return verdict

    def clear(self) -> None:
        self.code = ""
        self.verdict = None
        self.validating = False
        self._token += 1

    @property
    def is_valid(self) -> bool:
        return self.verdict is not None and self.verdict.valid

    @property
    def discount_percent(self) -> Decimal:
        """Discount reported by a valid verdict, unclamped; 0 otherwise."""
        return self.verdict.discount_percent if self.is_valid else Decimal("0")

    @property
    def applied_code(self) -> str | None:
        return self.code.strip() if self.is_valid else None
