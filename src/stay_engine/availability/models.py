"""Dataclasses for availability queries and normalised room availability."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from stay_engine.errors import InvalidDateRange
from stay_engine.utils.dates import night_keys, ymd
from stay_engine.utils.money import ZERO


class AvailabilityReason(str, Enum):
    """Why a successful query produced no rooms."""

    NO_ROOMS = "no-rooms"
    NO_AREA_COVERAGE = "no-area-coverage"


@dataclass(slots=True)
class AvailabilityQuery:
    """Parameters of one upstream availability request."""

    property_id: str
    start_date: date
    end_date: date
    adults: int = 1
    children: int = 0
    infants: int = 0
    pet: bool = False
    currency: str = "CAD"
    room_type_id: Optional[str] = None

    def ensure_valid_window(self) -> None:
        if self.end_date <= self.start_date:
            raise InvalidDateRange(
                f"endDate {ymd(self.end_date)} must be after startDate {ymd(self.start_date)}"
            )

    def night_keys(self) -> List[str]:
        return night_keys(self.start_date, self.end_date)

    def scoped(self, room_type_id: str) -> "AvailabilityQuery":
        return replace(self, room_type_id=room_type_id)

    def to_params(self, property_param: str = "hotelNo") -> dict[str, str]:
        params = {
            property_param: self.property_id,
            "startDate": ymd(self.start_date),
            "endDate": ymd(self.end_date),
            "adult": str(self.adults),
            "child": str(self.children),
            "infant": str(self.infants),
            "pet": "yes" if self.pet else "no",
            "currency": self.currency.upper(),
        }
        if self.room_type_id:
            params["roomTypeId"] = self.room_type_id
        return params


@dataclass(slots=True)
class RoomAvailabilityRecord:
    """One room type's nightly prices, availability and stay rules for a query window."""

    room_type_id: str
    room_type_name: str
    currency_code: str
    daily_prices: Dict[str, Decimal] = field(default_factory=dict)
    availability: Dict[str, bool] = field(default_factory=dict)
    min_stay_by_date: Dict[str, int] = field(default_factory=dict)
    max_stay_by_date: Dict[str, int] = field(default_factory=dict)
    default_min_stay: Optional[int] = None
    default_max_stay: Optional[int] = None
    pet_fee_amount: Decimal = ZERO
    cleaning_fee_amount: Decimal = ZERO
    vat_amount: Decimal = ZERO
    property_id: Optional[str] = None
    total_price: Optional[Decimal] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def is_available(self, night: str) -> bool:
        return self.availability.get(night) is True

    def available_dates(self) -> Set[str]:
        return {night for night, flag in self.availability.items() if flag is True}

    def to_dict(self) -> dict[str, object]:
        return {
            "propertyId": self.property_id,
            "roomTypeId": self.room_type_id,
            "roomTypeName": self.room_type_name,
            "currencyCode": self.currency_code,
            "totalPrice": str(self.total_price) if self.total_price is not None else None,
            "dailyPrices": {night: str(price) for night, price in sorted(self.daily_prices.items())},
            "availability": dict(sorted(self.availability.items())),
            "minStayByDate": dict(sorted(self.min_stay_by_date.items())),
            "maxStayByDate": dict(sorted(self.max_stay_by_date.items())),
            "defaultMinStay": self.default_min_stay,
            "defaultMaxStay": self.default_max_stay,
            "petFeeAmount": str(self.pet_fee_amount),
            "cleaningFeeAmount": str(self.cleaning_fee_amount),
            "vatAmount": str(self.vat_amount),
        }

    @classmethod
    def from_iterable(cls, records: Iterable["RoomAvailabilityRecord"]) -> List[dict[str, object]]:
        return [record.to_dict() for record in records]


@dataclass(slots=True)
class AvailabilityResult:
    """Outcome of a successful availability query; ``reason`` is set when empty."""

    rooms: List[RoomAvailabilityRecord] = field(default_factory=list)
    reason: Optional[AvailabilityReason] = None

    @classmethod
    def empty(cls, reason: AvailabilityReason) -> "AvailabilityResult":
        return cls(rooms=[], reason=reason)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "success": True,
            "rooms": RoomAvailabilityRecord.from_iterable(self.rooms),
        }
        if self.reason is not None:
            payload["reason"] = self.reason.value
        return payload


@dataclass(slots=True)
class RoomTypeOption:
    room_type_id: str
    room_type_name: str

    def to_dict(self) -> dict[str, str]:
        return {"roomTypeId": self.room_type_id, "roomTypeName": self.room_type_name}


@dataclass(slots=True)
class CalendarWindow:
    """Availability loaded for the booking calendar of a single room type."""

    start_date: date
    end_date: date
    record: Optional[RoomAvailabilityRecord]
    room_types: List[RoomTypeOption] = field(default_factory=list)
    requested_room_type_id: Optional[str] = None
    response_room_type_id: Optional[str] = None

    @property
    def fallback_mode(self) -> bool:
        """True when upstream answered for a different room type than requested."""
        if not self.requested_room_type_id:
            return False
        if self.response_room_type_id is None:
            return True
        return self.response_room_type_id.strip().lower() != self.requested_room_type_id.strip().lower()

    def to_dict(self) -> dict[str, object]:
        return {
            "startDate": ymd(self.start_date),
            "endDate": ymd(self.end_date),
            "room": self.record.to_dict() if self.record else None,
            "roomTypes": [option.to_dict() for option in self.room_types],
            "fallbackMode": self.fallback_mode,
        }
