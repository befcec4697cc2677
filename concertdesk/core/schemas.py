from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class VenueZone(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="zone_name")
    capacity: int = Field(default=0, ge=0, alias="capacity_per_zone")


class Venue(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="arena_id")
    name: str = Field(default="", alias="arena_name")
    location: str = Field(default="", alias="arena_location")
    total_capacity: int = 0
    zones: tuple[VenueZone, ...] = ()


class Performer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="artist_id")
    name: str = Field(default="", alias="artist_name")
    genre: str = ""


class Referrer(BaseModel):
    id: str = ""
    username: str = ""
    name: str = ""


class ReferralVerdict(BaseModel):
    """Outcome of checking a referral code. Invalid verdicts carry a reason in ``message``."""

    valid: bool
    discount_percent: Decimal = Decimal("0")
    message: str = ""
    referrer: Optional[Referrer] = None

    @classmethod
    def invalid(cls, message: str) -> "ReferralVerdict":
        return cls(valid=False, message=message)


class ZonePrice(BaseModel):
    zone_name: str
    capacity_per_zone: int
    price: Decimal

    @field_serializer("price")
    def _price_as_number(self, value: Decimal) -> float:
        return float(value)


class Collaboration(BaseModel):
    artist1: str
    artist2: str


class ConcertSubmission(BaseModel):
    """Body of POST /organizer/concerts."""

    model_config = ConfigDict(populate_by_name=True)

    organizer_id: Optional[str] = Field(default=None, alias="organizerId")
    title: str = ""
    description: str
    date: str
    time: str
    venue_id: str = Field(alias="arenaId")
    zones: list[ZonePrice] = Field(default_factory=list)
    performer_ids: list[str] = Field(default_factory=list, alias="artists")
    collaborations: list[Collaboration] = Field(default_factory=list)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ConcertCreated(BaseModel):
    id: str
    message: str = ""


class ConcertZone(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="zone_name")
    price: Decimal = Decimal("0")
    capacity: int = Field(default=0, alias="capacity_per_zone")
    available_tickets: Optional[int] = Field(default=None, alias="availableTickets")


class Concert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="concert_id")
    name: str = Field(default="", alias="concert_name")
    date: str = Field(default="", alias="concert_date")
    time: str = ""
    description: str = ""
    zones: list[ConcertZone] = Field(default_factory=list)

    def zone(self, zone_name: str) -> ConcertZone | None:
        return next((z for z in self.zones if z.name == zone_name), None)


class PurchaseIntent(BaseModel):
    """Transient purchase request; built fresh for each attempt."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    concert_id: str = Field(alias="concertId")
    zone_id: str = Field(alias="zoneId")
    quantity: int = Field(ge=1)
    buyer_id: str = Field(alias="fanId")
    referral_code: Optional[str] = Field(default=None, alias="referralCode")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PurchaseCheck(BaseModel):
    is_valid: bool
    message: str = ""
    total_price: Optional[Decimal] = None


class PurchaseResult(BaseModel):
    success: bool = True
    message: str = ""
    tickets: list[dict] = Field(default_factory=list)
    total_price: Optional[Decimal] = None
