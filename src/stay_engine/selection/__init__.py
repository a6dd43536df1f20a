"""Booking-calendar date selection."""

from .rules import is_checkout_blocked_by_rules, is_hard_unavailable, validate_range
from .state import (
    CalendarSelection,
    CalendarSelectionState,
    DayStatus,
    SelectionNotice,
    SelectionPhase,
    TapOutcome,
)

__all__ = [
    "CalendarSelection",
    "CalendarSelectionState",
    "DayStatus",
    "SelectionNotice",
    "SelectionPhase",
    "TapOutcome",
    "is_checkout_blocked_by_rules",
    "is_hard_unavailable",
    "validate_range",
]
