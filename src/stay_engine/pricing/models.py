"""Dataclasses for date ranges, nightly aggregates and quotes."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from stay_engine.errors import InvalidDateRange
from stay_engine.utils.dates import DateLike, night_keys, nights_between, parse_iso, ymd
from stay_engine.utils.money import ZERO


@dataclass(frozen=True, slots=True)
class DateRange:
    """Half-open interval of nights ``[check_in, check_out)``."""

    check_in: str
    check_out: str

    def __post_init__(self) -> None:
        check_in = ymd(parse_iso(self.check_in))
        check_out = ymd(parse_iso(self.check_out))
        if check_out <= check_in:
            raise InvalidDateRange(f"checkOut {check_out} must be after checkIn {check_in}")
        object.__setattr__(self, "check_in", check_in)
        object.__setattr__(self, "check_out", check_out)

    @classmethod
    def of(cls, check_in: DateLike, check_out: DateLike) -> "DateRange":
        return cls(ymd(parse_iso(check_in)), ymd(parse_iso(check_out)))

    @property
    def nights(self) -> int:
        return nights_between(self.check_in, self.check_out)

    def night_keys(self) -> List[str]:
        return night_keys(self.check_in, self.check_out)

    def to_dict(self) -> dict[str, str]:
        return {"checkIn": self.check_in, "checkOut": self.check_out}


@dataclass(frozen=True, slots=True)
class StayBounds:
    min_stay: int
    max_stay: int

    def allows(self, nights: int) -> bool:
        return self.min_stay <= nights <= self.max_stay


@dataclass(slots=True)
class NightlyAggregate:
    """Sum of nightly prices over a range, plus whether every night is bookable."""

    room_subtotal: Decimal
    all_nights_available: bool
    nights: int
    unavailable_nights: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Quote:
    room_subtotal: Decimal
    pet_fee: Decimal
    cleaning_fee: Decimal
    vat: Decimal
    grand_total: Decimal
    nights: int
    currency: str

    @property
    def nightly_rate(self) -> Decimal:
        if not self.nights:
            return ZERO
        return self.room_subtotal / self.nights

    def to_dict(self) -> dict[str, object]:
        return {
            "roomSubtotal": str(self.room_subtotal),
            "petFee": str(self.pet_fee),
            "cleaningFee": str(self.cleaning_fee),
            "vat": str(self.vat),
            "grandTotal": str(self.grand_total),
            "nights": self.nights,
            "currency": self.currency,
        }


@dataclass(slots=True)
class FinalizedQuote:
    """A quote plus the bookability verdict payment consumers must honour."""

    quote: Quote
    available: bool
    date_range: DateRange
    room_type_id: str
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"available": self.available, "quote": self.quote.to_dict()}
        if self.reason:
            payload["reason"] = self.reason
        return payload
