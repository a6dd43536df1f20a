"""Day predicates used by the booking calendar.

``is_hard_unavailable`` and ``is_checkout_blocked_by_rules`` answer different
questions and are kept separate: the first greys a day out for any purpose, the
second only refuses a day as checkout for the currently picked start.
"""
from __future__ import annotations

from typing import Optional

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.errors import GapInAvailability
from stay_engine.pricing.aggregator import ensure_no_gaps
from stay_engine.pricing.models import DateRange, StayBounds
from stay_engine.pricing.stay_rules import check_stay_rules, resolve_stay_bounds
from stay_engine.utils.dates import add_days, iter_nights, nights_between


def is_hard_unavailable(
    record: Optional[RoomAvailabilityRecord],
    day: str,
    *,
    loading: bool = False,
) -> bool:
    """True when ``day`` is not bookable upstream, or availability is still loading."""
    if loading or record is None or not day:
        return True
    return not record.is_available(day)


def is_checkout_blocked_by_rules(
    record: Optional[RoomAvailabilityRecord],
    start: Optional[str],
    candidate: str,
) -> bool:
    """True when ``candidate`` cannot be checkout for ``start`` under stay rules.

    Covers min/max stay for the start date and the no-gap rule for every night
    strictly between ``start`` and ``candidate``. Without a start, no rule applies.
    """
    if not start:
        return False
    if record is None or not candidate or candidate <= start:
        return True
    nights = nights_between(start, candidate)
    if not resolve_stay_bounds(record, start).allows(nights):
        return True
    return any(not record.is_available(night) for night in iter_nights(add_days(start, 1), candidate))


def validate_range(
    record: Optional[RoomAvailabilityRecord],
    date_range: DateRange,
    *,
    loading: bool = False,
) -> StayBounds:
    """Full re-validation of a range before it is committed.

    Raises :class:`GapInAvailability` if any night is unavailable (every night
    counts as unavailable while loading) and :class:`StayRuleViolation` if the
    stay length is outside the start date's bounds.
    """
    if loading or record is None:
        raise GapInAvailability(date_range.night_keys())
    ensure_no_gaps(record, date_range)
    return check_stay_rules(record, date_range)
