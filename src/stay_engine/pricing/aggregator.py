"""Nightly price aggregation over a half-open date range."""
from __future__ import annotations

import logging
from typing import List

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.errors import GapInAvailability, PriceAggregationError
from stay_engine.utils.money import ZERO, sum_amounts

from .models import DateRange, NightlyAggregate

logger = logging.getLogger(__name__)


def unavailable_nights(record: RoomAvailabilityRecord, date_range: DateRange) -> List[str]:
    """Nights in the range whose flag is missing or not explicitly true."""
    return [night for night in date_range.night_keys() if not record.is_available(night)]


def aggregate(record: RoomAvailabilityRecord, date_range: DateRange) -> NightlyAggregate:
    """Sum nightly prices over ``date_range`` and check every night is bookable.

    A night without a price contributes 0; a night without an availability flag
    counts as unavailable.
    """
    if not record.daily_prices:
        raise PriceAggregationError(f"Room type {record.room_type_id or '?'} has no nightly prices")

    nights = date_range.night_keys()
    subtotal = sum_amounts(record.daily_prices.get(night, ZERO) for night in nights)
    missing: List[str] = [night for night in nights if not record.is_available(night)]

    if missing:
        logger.debug(
            "Room type %s unavailable on %s within %s → %s",
            record.room_type_id,
            ", ".join(missing),
            date_range.check_in,
            date_range.check_out,
        )
    return NightlyAggregate(
        room_subtotal=subtotal,
        all_nights_available=not missing,
        nights=len(nights),
        unavailable_nights=missing,
    )


def ensure_no_gaps(record: RoomAvailabilityRecord, date_range: DateRange) -> None:
    missing = unavailable_nights(record, date_range)
    if missing:
        raise GapInAvailability(missing)
