"""
Marketplace HTTP client — the REST API of the ticketing marketplace.

Endpoints (relative to api_base_url):
    GET  /organizer/arenas/available?date=YYYY-MM-DD
    GET  /organizer/artists/available?date=YYYY-MM-DD
    POST /referrals/validate           {"referralCode": ..., "fanId": ...}
    POST /organizer/concerts
    GET  /concerts/{id}
    POST /tickets/validate-purchase
    POST /tickets/purchase

Non-2xx responses raise ApiError with the body's "message" or "error" text.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from concertdesk.config import Settings
from concertdesk.core.dates import CanonicalDate
from concertdesk.core.errors import ApiError
from concertdesk.core.schemas import (
    Concert,
    ConcertCreated,
    ConcertSubmission,
    Performer,
    PurchaseCheck,
    PurchaseIntent,
    PurchaseResult,
    ReferralVerdict,
    Referrer,
    Venue,
)
from concertdesk.integrations.base import MarketplaceApi

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Something went wrong"


class HttpMarketplaceApi(MarketplaceApi):
    """
    httpx-based marketplace client.

    Args:
        base_url: API root, e.g. "http://localhost:4000/api".
        token: Bearer token for authenticated endpoints (optional).
        user_id: Signed-in user; sent as fanId where the server needs it.
        timeout: Per-request timeout in seconds.
        transport: Custom httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        user_id: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token or ""
        self.user_id = user_id
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, user_id: str | None = None) -> "HttpMarketplaceApi":
        return cls(
            base_url=settings.api_base_url,
            token=settings.api_token,
            user_id=user_id,
            timeout=settings.request_timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, params=params, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Marketplace %s %s failed: %s", method, path, e)
            raise ApiError(str(e) or DEFAULT_ERROR) from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if not resp.is_success:
            body = data if isinstance(data, dict) else {}
            message = body.get("message") or body.get("error") or DEFAULT_ERROR
            logger.warning("Marketplace %s %s -> %s: %s", method, path, resp.status_code, message)
            raise ApiError(str(message), status=resp.status_code, details=body)

        return data

    async def fetch_venues_for_date(self, date: CanonicalDate) -> list[Venue]:
        data = await self._request("GET", "/organizer/arenas/available", params={"date": date.key})
        return [Venue.model_validate(a) for a in _as_list(data, "arenas")]

    async def fetch_performers_for_date(self, date: CanonicalDate) -> list[Performer]:
        data = await self._request("GET", "/organizer/artists/available", params={"date": date.key})
        return [_performer_from_payload(a) for a in _as_list(data, "artists")]

    async def validate_referral_code(self, code: str) -> ReferralVerdict:
        payload: dict[str, Any] = {"referralCode": code}
        # The server rejects validation without the fan it applies to.
        if self.user_id:
            payload["fanId"] = self.user_id
        try:
            data = await self._request("POST", "/referrals/validate", json=payload)
        except ApiError as e:
            # The server answers unusable codes with 4xx + {"valid": false}.
            if e.status is not None and e.details.get("valid") is False:
                return ReferralVerdict.invalid(e.message)
            raise
        return _verdict_from_payload(data if isinstance(data, dict) else {})

    async def submit_concert(self, submission: ConcertSubmission) -> ConcertCreated:
        data = await self._request("POST", "/organizer/concerts", json=submission.to_payload())
        body = data if isinstance(data, dict) else {}
        concert_id = body.get("concertId") or body.get("concert_id") or body.get("id")
        if not concert_id:
            raise ApiError("Concert created but no id returned", status=200, details=body)
        return ConcertCreated(id=str(concert_id), message=body.get("message") or "")

    async def fetch_concert(self, concert_id: str) -> Concert:
        data = await self._request("GET", f"/concerts/{concert_id}")
        body = data.get("concert", data) if isinstance(data, dict) else {}
        return _concert_from_payload(body)

    async def validate_purchase(self, intent: PurchaseIntent) -> PurchaseCheck:
        data = await self._request("POST", "/tickets/validate-purchase", json=intent.to_payload())
        body = data if isinstance(data, dict) else {}
        return PurchaseCheck(
            is_valid=bool(body.get("isValid", True)),
            message=body.get("message") or "",
            total_price=_to_decimal(body.get("totalPrice")),
        )

    async def purchase_tickets(self, intent: PurchaseIntent) -> PurchaseResult:
        data = await self._request("POST", "/tickets/purchase", json=intent.to_payload())
        body = data if isinstance(data, dict) else {}
        tickets = body.get("tickets")
        if tickets is None:
            tickets = [{"ticket_id": body["ticketId"]}] if body.get("ticketId") else []
        return PurchaseResult(
            success=bool(body.get("success", True)),
            message=body.get("message") or "",
            tickets=list(tickets),
            total_price=_to_decimal(body.get("totalPrice")),
        )


def _as_list(data: Any, key: str) -> list[dict]:
    """Accept both a bare JSON list and {"<key>": [...]} envelopes."""
    if isinstance(data, dict):
        data = data.get(key) or data.get("data") or []
    return [item for item in (data or []) if isinstance(item, dict)]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _performer_from_payload(raw: dict) -> Performer:
    return Performer(
        id=str(raw.get("artist_id") or raw.get("_id") or ""),
        name=raw.get("artist_name") or raw.get("name") or "",
        genre=raw.get("genre") or "",
    )


def _verdict_from_payload(raw: dict) -> ReferralVerdict:
    valid = bool(raw.get("valid"))
    referrer = raw.get("referrer")
    return ReferralVerdict(
        valid=valid,
        # Kept as reported; the pricing calculator clamps it.
        discount_percent=(_to_decimal(raw.get("discount")) or Decimal("0")) if valid else Decimal("0"),
        message=raw.get("message") or raw.get("error") or "",
        referrer=Referrer(
            id=str(referrer.get("id") or ""),
            username=referrer.get("username") or "",
            name=referrer.get("name") or "",
        )
        if isinstance(referrer, dict)
        else None,
    )


def _concert_from_payload(raw: dict) -> Concert:
    arena = raw.get("arena") or {}
    zones = arena.get("zones") or raw.get("zone_pricing") or []
    return Concert(
        id=str(raw.get("concert_id") or raw.get("_id") or ""),
        name=raw.get("concert_name") or raw.get("description") or "",
        date=raw.get("concert_date") or raw.get("date") or "",
        time=raw.get("time") or "",
        description=raw.get("description") or "",
        zones=[
            {
                "zone_name": z.get("zone_name", ""),
                "price": _to_decimal(z.get("price")) or Decimal("0"),
                "capacity_per_zone": z.get("capacity_per_zone") or 0,
                "availableTickets": z.get("availableTickets"),
            }
            for z in zones
            if isinstance(z, dict)
        ],
    )
