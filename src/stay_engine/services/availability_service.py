"""Availability search, quoting and calendar loading on top of the upstream client."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from stay_engine.availability.models import (
    AvailabilityQuery,
    AvailabilityResult,
    CalendarWindow,
    RoomAvailabilityRecord,
    RoomTypeOption,
)
from stay_engine.availability.normalizer import normalize_availability, room_type_options, row_room_type_id
from stay_engine.availability.shapes import RoomTypesPayload, detect_shape
from stay_engine.config.settings import Settings
from stay_engine.errors import PriceAggregationError, StayEngineError, StayRuleViolation
from stay_engine.pricing.aggregator import aggregate
from stay_engine.pricing.models import DateRange, FinalizedQuote
from stay_engine.pricing.quote import finalize_quote
from stay_engine.pricing.stay_rules import check_stay_rules
from stay_engine.utils.dates import add_months

from .availability_client import AvailabilityClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QuoteRequest:
    property_id: str
    room_type_id: str
    check_in: str
    check_out: str
    adults: int = 1
    children: int = 0
    infants: int = 0
    pet: bool = False
    currency: Optional[str] = None


@dataclass(slots=True)
class QuoteResult:
    available: bool
    finalized: Optional[FinalizedQuote] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"available": self.available}
        if self.finalized is not None:
            payload["quote"] = self.finalized.quote.to_dict()
        if self.reason:
            payload["reason"] = self.reason
        return payload


def _same_id(left: Optional[str], right: Optional[str]) -> bool:
    return (left or "").strip().lower() == (right or "").strip().lower()


def _calendar_record(records: List[RoomAvailabilityRecord], room_type_id: Optional[str]) -> Optional[RoomAvailabilityRecord]:
    if room_type_id:
        for record in records:
            if _same_id(record.room_type_id, room_type_id):
                return record
    return records[0] if records else None


class AvailabilityService:
    def __init__(self, client: AvailabilityClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    async def search(self, query: AvailabilityQuery) -> AvailabilityResult:
        """Bookable rooms for the whole query window.

        The window is validated before any request goes out.
        """
        query.ensure_valid_window()
        logger.info(
            "Searching availability for %s (%s → %s)",
            query.property_id,
            query.start_date,
            query.end_date,
        )
        payload = await self.client.fetch_availability(query)
        result = await normalize_availability(payload, query, fetch=self.client.fetch_availability)
        logger.info(
            "Availability for %s: %s room(s)%s",
            query.property_id,
            len(result.rooms),
            f" ({result.reason.value})" if result.reason else "",
        )
        return result

    async def quote(self, request: QuoteRequest) -> QuoteResult:
        date_range = DateRange(request.check_in, request.check_out)
        query = AvailabilityQuery(
            property_id=request.property_id,
            start_date=date.fromisoformat(date_range.check_in),
            end_date=date.fromisoformat(date_range.check_out),
            adults=request.adults,
            children=request.children,
            infants=request.infants,
            pet=request.pet,
            currency=(request.currency or self.settings.default_currency).upper(),
            room_type_id=request.room_type_id,
        )
        payload = await self.client.fetch_availability(query)
        result = await normalize_availability(
            payload, query, fetch=self.client.fetch_availability, require_full_window=False
        )
        # a quote never substitutes another room type
        record = next((r for r in result.rooms if _same_id(r.room_type_id, request.room_type_id)), None)
        if record is None and result.rooms:
            logger.info(
                "Quote for %s: upstream answered %s, not the requested room type",
                request.room_type_id,
                ", ".join(r.room_type_id for r in result.rooms),
            )
            return QuoteResult(available=False, reason="room-type-mismatch")
        if record is None:
            reason = result.reason.value if result.reason else "no-rooms"
            return QuoteResult(available=False, reason=reason)

        try:
            check_stay_rules(record, date_range)
        except StayRuleViolation as exc:
            logger.info("Quote for %s rejected: %s", record.room_type_id, exc)
            return QuoteResult(available=False, reason="stay-rule-violation")

        try:
            nightly = aggregate(record, date_range)
        except PriceAggregationError as exc:
            logger.info("Quote for %s has no pricing: %s", record.room_type_id, exc)
            return QuoteResult(available=False, reason="no-pricing")

        finalized = finalize_quote(record, date_range, nightly, pet=request.pet)
        return QuoteResult(available=finalized.available, finalized=finalized, reason=finalized.reason)

    async def calendar(
        self,
        property_id: str,
        *,
        room_type_id: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> CalendarWindow:
        """Load the calendar window (today to today + N months + 1 day) for one room type."""
        start = self.settings.today()
        end = add_months(start, self.settings.calendar_window_months) + timedelta(days=1)
        query = AvailabilityQuery(
            property_id=property_id,
            start_date=start,
            end_date=end,
            currency=(currency or self.settings.default_currency).upper(),
            room_type_id=room_type_id,
        )
        payload, listed = await asyncio.gather(
            self.client.fetch_availability(query),
            self._listed_room_types(),
        )
        result = await normalize_availability(
            payload, query, fetch=self.client.fetch_availability, require_full_window=False
        )
        record = _calendar_record(result.rooms, room_type_id)

        shape = detect_shape(payload)
        room_types = listed or (room_type_options(shape.room_types) if isinstance(shape, RoomTypesPayload) else [])
        window = CalendarWindow(
            start_date=start,
            end_date=end,
            record=record,
            room_types=room_types,
            requested_room_type_id=room_type_id,
            response_room_type_id=(row_room_type_id(record.raw) or None) if record else None,
        )
        if window.fallback_mode:
            logger.info(
                "Calendar fallback for %s: requested room type %s, upstream answered %s",
                property_id,
                room_type_id,
                window.response_room_type_id,
            )
        return window

    async def _listed_room_types(self) -> List[RoomTypeOption]:
        try:
            return await self.client.list_room_types()
        except StayEngineError as exc:
            logger.warning("Room type listing unavailable: %s", exc)
            return []
