from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from concertdesk.config import Settings
from concertdesk.core.dates import CanonicalDate
from concertdesk.core.errors import ApiError, ErrorCode
from concertdesk.core.schemas import (
    Collaboration,
    ConcertSubmission,
    PurchaseIntent,
    ZonePrice,
)
from concertdesk.integrations.marketplace import HttpMarketplaceApi

BASE = "http://marketplace.test/api"
XMAS = CanonicalDate(date(2099, 12, 25))


def _client(handler, **kwargs) -> tuple[HttpMarketplaceApi, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    api = HttpMarketplaceApi(BASE, transport=httpx.MockTransport(_record), **kwargs)
    return api, seen


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.mark.asyncio
async def test_fetch_venues_for_date():
    arenas = [
        {
            "arena_id": "arena-1",
            "arena_name": "Main Hall",
            "arena_location": "Downtown",
            "total_capacity": 150,
            "zones": [
                {"zone_name": "A", "capacity_per_zone": 100},
                {"zone_name": "B", "capacity_per_zone": 50},
            ],
        }
    ]
    api, seen = _client(lambda r: httpx.Response(200, json=arenas), token="tok")

    venues = await api.fetch_venues_for_date(XMAS)

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/organizer/arenas/available"
    assert seen[0].url.params["date"] == "2099-12-25"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert venues[0].id == "arena-1"
    assert venues[0].name == "Main Hall"
    assert [(z.name, z.capacity) for z in venues[0].zones] == [("A", 100), ("B", 50)]


@pytest.mark.asyncio
async def test_fetch_venues_accepts_envelope():
    api, _ = _client(lambda r: httpx.Response(200, json={"arenas": [{"arena_id": "a-2"}]}))
    venues = await api.fetch_venues_for_date(XMAS)
    assert [v.id for v in venues] == ["a-2"]


@pytest.mark.asyncio
async def test_no_authorization_header_without_token():
    api, seen = _client(lambda r: httpx.Response(200, json=[]))
    await api.fetch_venues_for_date(XMAS)
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_fetch_performers_for_date():
    artists = [
        {"artist_id": "artist-1", "artist_name": "The Band", "genre": "rock"},
        {"_id": "artist-2", "name": "Solo"},
    ]
    api, seen = _client(lambda r: httpx.Response(200, json=artists))

    performers = await api.fetch_performers_for_date(XMAS)

    assert seen[0].url.path == "/api/organizer/artists/available"
    assert [(p.id, p.name) for p in performers] == [("artist-1", "The Band"), ("artist-2", "Solo")]


@pytest.mark.asyncio
async def test_error_status_raises_api_error_with_server_message():
    api, _ = _client(lambda r: httpx.Response(500, json={"message": "Database down"}))
    with pytest.raises(ApiError) as exc:
        await api.fetch_venues_for_date(XMAS)
    assert exc.value.message == "Database down"
    assert exc.value.status == 500
    assert exc.value.code == ErrorCode.API_REJECTED


@pytest.mark.asyncio
async def test_error_status_without_body_uses_default_message():
    api, _ = _client(lambda r: httpx.Response(502, text="Bad gateway"))
    with pytest.raises(ApiError) as exc:
        await api.fetch_performers_for_date(XMAS)
    assert exc.value.message == "Something went wrong"


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def _boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    api, _ = _client(_boom)
    with pytest.raises(ApiError) as exc:
        await api.fetch_venues_for_date(XMAS)
    assert exc.value.status is None
    assert exc.value.code == ErrorCode.NETWORK_FAILURE
    assert "connection refused" in exc.value.message


@pytest.mark.asyncio
async def test_validate_referral_code_valid():
    payload = {
        "valid": True,
        "discount": 10,
        "message": "Referral code applied",
        "referrer": {"id": "fan-9", "username": "jo", "name": "Jo Doe"},
    }
    api, seen = _client(lambda r: httpx.Response(200, json=payload), user_id="fan-1")

    verdict = await api.validate_referral_code("FRIEND10")

    assert _body(seen[0]) == {"referralCode": "FRIEND10", "fanId": "fan-1"}
    assert verdict.valid
    assert verdict.discount_percent == Decimal("10")
    assert verdict.referrer.username == "jo"


@pytest.mark.asyncio
async def test_validate_referral_code_without_user_sends_code_only():
    api, seen = _client(lambda r: httpx.Response(200, json={"valid": True, "discount": 5}))
    await api.validate_referral_code("FRIEND5")
    assert _body(seen[0]) == {"referralCode": "FRIEND5"}


@pytest.mark.asyncio
async def test_validate_referral_code_rejected_by_server():
    api, _ = _client(lambda r: httpx.Response(400, json={"valid": False, "message": "Invalid referral code"}))
    verdict = await api.validate_referral_code("NOPE")
    assert verdict.valid is False
    assert verdict.message == "Invalid referral code"
    assert verdict.discount_percent == 0


@pytest.mark.asyncio
async def test_validate_referral_code_server_failure_raises():
    api, _ = _client(lambda r: httpx.Response(500, json={"error": "oops"}))
    with pytest.raises(ApiError):
        await api.validate_referral_code("FRIEND10")


@pytest.mark.asyncio
async def test_submit_concert():
    api, seen = _client(lambda r: httpx.Response(201, json={"concertId": "c-1", "message": "Concert created"}))
    submission = ConcertSubmission(
        organizer_id="org-1",
        description="Fall Tour",
        date="2099-12-25",
        time="20:00",
        venue_id="arena-1",
        zones=[ZonePrice(zone_name="A", capacity_per_zone=100, price=Decimal("49.99"))],
        performer_ids=["artist-1", "artist-2"],
        collaborations=[Collaboration(artist1="artist-1", artist2="artist-2")],
    )

    created = await api.submit_concert(submission)

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/organizer/concerts"
    body = _body(seen[0])
    assert body["arenaId"] == "arena-1"
    assert body["zones"] == [{"zone_name": "A", "capacity_per_zone": 100, "price": 49.99}]
    assert body["artists"] == ["artist-1", "artist-2"]
    assert body["collaborations"] == [{"artist1": "artist-1", "artist2": "artist-2"}]
    assert created.id == "c-1"


@pytest.mark.asyncio
async def test_submit_concert_without_id_is_an_error():
    api, _ = _client(lambda r: httpx.Response(200, json={"message": "ok"}))
    submission = ConcertSubmission(description="x", date="2099-12-25", time="20:00", venue_id="a")
    with pytest.raises(ApiError):
        await api.submit_concert(submission)


@pytest.mark.asyncio
async def test_fetch_concert():
    payload = {
        "concert": {
            "concert_id": "c-1",
            "concert_name": "Fall Tour",
            "concert_date": "2099-12-25",
            "time": "20:00",
            "arena": {
                "zones": [
                    {"zone_name": "A", "price": 49.99, "capacity_per_zone": 100, "availableTickets": 80},
                ]
            },
        }
    }
    api, seen = _client(lambda r: httpx.Response(200, json=payload))

    concert = await api.fetch_concert("c-1")

    assert seen[0].url.path == "/api/concerts/c-1"
    assert concert.id == "c-1"
    zone = concert.zone("A")
    assert zone.price == Decimal("49.99")
    assert zone.available_tickets == 80


@pytest.mark.asyncio
async def test_validate_purchase_and_purchase():
    def handler(request):
        if request.url.path.endswith("/validate-purchase"):
            return httpx.Response(200, json={"isValid": True, "totalPrice": 89.98})
        return httpx.Response(200, json={"success": True, "ticketId": "t-1", "totalPrice": 89.98})

    api, seen = _client(handler)
    intent = PurchaseIntent(concert_id="c-1", zone_id="A", quantity=2, buyer_id="fan-1", referral_code="FRIEND10")

    check = await api.validate_purchase(intent)
    result = await api.purchase_tickets(intent)

    assert check.is_valid
    assert check.total_price == Decimal("89.98")
    assert result.success
    assert result.tickets == [{"ticket_id": "t-1"}]
    assert _body(seen[1]) == {
        "concertId": "c-1",
        "zoneId": "A",
        "quantity": 2,
        "fanId": "fan-1",
        "referralCode": "FRIEND10",
    }


def test_from_settings():
    settings = Settings(api_base_url="http://x.test/api/", api_token="t", request_timeout=3.0)
    api = HttpMarketplaceApi.from_settings(settings, user_id="u-1")
    assert api.base_url == "http://x.test/api"
    assert api.token == "t"
    assert api.timeout == 3.0
    assert api.user_id == "u-1"
