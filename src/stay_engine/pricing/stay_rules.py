"""Per-start-date minimum/maximum stay resolution."""
from __future__ import annotations

from typing import Any

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.errors import StayRuleViolation
from stay_engine.utils.money import to_int

from .models import DateRange, StayBounds

DEFAULT_MIN_STAY = 1
DEFAULT_MAX_STAY = 365


def normalize_min_nights(value: Any) -> int:
    nights = to_int(value)
    return nights if nights > 0 else DEFAULT_MIN_STAY


def normalize_max_nights(value: Any, min_stay: int) -> int:
    nights = to_int(value)
    if nights <= 0:
        return max(DEFAULT_MAX_STAY, min_stay)
    return max(nights, min_stay)


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def resolve_stay_bounds(record: RoomAvailabilityRecord, check_in: str) -> StayBounds:
    """Per-date override, then the record default, then 1 / 365 nights.

    A maximum below the minimum is raised to the minimum so that at least one
    stay length is always valid.
    """
    min_stay = normalize_min_nights(
        _first_set(record.min_stay_by_date.get(check_in), record.default_min_stay, DEFAULT_MIN_STAY)
    )
    max_stay = normalize_max_nights(
        _first_set(record.max_stay_by_date.get(check_in), record.default_max_stay, DEFAULT_MAX_STAY),
        min_stay,
    )
    return StayBounds(min_stay=min_stay, max_stay=max_stay)


def check_stay_rules(record: RoomAvailabilityRecord, date_range: DateRange) -> StayBounds:
    """Return the bounds for ``date_range`` or raise :class:`StayRuleViolation`."""
    bounds = resolve_stay_bounds(record, date_range.check_in)
    nights = date_range.nights
    if not bounds.allows(nights):
        raise StayRuleViolation(nights=nights, min_stay=bounds.min_stay, max_stay=bounds.max_stay)
    return bounds
