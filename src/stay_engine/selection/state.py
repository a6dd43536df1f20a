"""Interactive check-in/check-out selection for the booking calendar."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.errors import GapInAvailability, InvalidDateRange, StayRuleViolation
from stay_engine.pricing.models import DateRange
from stay_engine.pricing.stay_rules import resolve_stay_bounds
from stay_engine.utils.dates import add_days, parse_iso, ymd

from .rules import is_checkout_blocked_by_rules, is_hard_unavailable, validate_range

logger = logging.getLogger(__name__)


class SelectionPhase(str, Enum):
    NO_SELECTION = "no-selection"
    START_PICKED = "start-picked"
    RANGE_PICKED = "range-picked"
    COMMITTED = "committed"


class TapOutcome(str, Enum):
    START_PICKED = "start-picked"
    RANGE_PICKED = "range-picked"
    HARD_UNAVAILABLE = "hard-unavailable"
    RULES_BLOCKED = "rules-blocked"


class DayStatus(str, Enum):
    SELECTABLE = "selectable"
    HARD_UNAVAILABLE = "hard-unavailable"
    RULES_BLOCKED = "rules-blocked"


class SelectionNotice(str, Enum):
    PREVIOUS_SELECTION_UNAVAILABLE = "previous-selection-unavailable"
    PREVIOUS_SELECTION_INVALID = "previous-selection-invalid"


@dataclass(slots=True)
class CalendarSelectionState:
    committed_range: Optional[DateRange] = None
    candidate_start: Optional[str] = None
    candidate_end: Optional[str] = None
    active_min_stay: Optional[int] = None
    active_max_stay: Optional[int] = None
    phase: SelectionPhase = SelectionPhase.NO_SELECTION
    notice: Optional[SelectionNotice] = None


class CalendarSelection:
    """Single-writer state machine over :class:`CalendarSelectionState`.

    Only :meth:`apply` (and :meth:`mount` for an incoming range) ever sets
    ``committed_range``. While availability is (re)loading every day is treated
    as hard-unavailable.
    """

    def __init__(
        self,
        record: Optional[RoomAvailabilityRecord] = None,
        *,
        state: Optional[CalendarSelectionState] = None,
        loading: bool = False,
    ) -> None:
        self._record = record
        self._loading = loading
        self.state = state or CalendarSelectionState()

    @classmethod
    def mount(
        cls,
        record: Optional[RoomAvailabilityRecord],
        incoming: Optional[DateRange] = None,
    ) -> "CalendarSelection":
        """Start a selection, committing ``incoming`` only if it is still bookable."""
        selection = cls(record)
        if incoming is None:
            return selection
        try:
            bounds = validate_range(record, incoming)
        except GapInAvailability as exc:
            logger.info("Incoming range %s → %s no longer available: %s", incoming.check_in, incoming.check_out, exc)
            selection.state.notice = SelectionNotice.PREVIOUS_SELECTION_UNAVAILABLE
            return selection
        except StayRuleViolation as exc:
            logger.info("Incoming range %s → %s breaks stay rules: %s", incoming.check_in, incoming.check_out, exc)
            selection.state.notice = SelectionNotice.PREVIOUS_SELECTION_INVALID
            return selection
        selection.state = CalendarSelectionState(
            committed_range=incoming,
            candidate_start=incoming.check_in,
            candidate_end=incoming.check_out,
            active_min_stay=bounds.min_stay,
            active_max_stay=bounds.max_stay,
            phase=SelectionPhase.COMMITTED,
        )
        return selection

    @property
    def record(self) -> Optional[RoomAvailabilityRecord]:
        return self._record

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def phase(self) -> SelectionPhase:
        return self.state.phase

    @property
    def committed_range(self) -> Optional[DateRange]:
        return self.state.committed_range

    def begin_refresh(self) -> None:
        self._loading = True

    def finish_refresh(self, record: Optional[RoomAvailabilityRecord]) -> None:
        self._record = record
        self._loading = False

    def is_hard_unavailable(self, day: Union[str, date]) -> bool:
        return is_hard_unavailable(self._record, _as_key(day), loading=self._loading)

    def is_checkout_blocked(self, day: Union[str, date]) -> bool:
        if self.state.phase is not SelectionPhase.START_PICKED:
            return False
        return is_checkout_blocked_by_rules(self._record, self.state.candidate_start, _as_key(day))

    def day_status(self, day: Union[str, date]) -> DayStatus:
        if self.is_hard_unavailable(day):
            return DayStatus.HARD_UNAVAILABLE
        if self.is_checkout_blocked(day) and _as_key(day) > (self.state.candidate_start or ""):
            return DayStatus.RULES_BLOCKED
        return DayStatus.SELECTABLE

    def tap(self, day: Union[str, date]) -> TapOutcome:
        key = _as_key(day)
        state = self.state
        if state.phase is not SelectionPhase.START_PICKED or not state.candidate_start:
            if self.is_hard_unavailable(key):
                return TapOutcome.HARD_UNAVAILABLE
            self._pick_start(key)
            return TapOutcome.START_PICKED

        start = state.candidate_start
        if key == start:
            return self._pick_range(start, add_days(start, 1))
        if key < start:
            return self._pick_range(key, start)
        return self._pick_range(start, key)

    @property
    def can_apply(self) -> bool:
        state = self.state
        return (
            state.phase is SelectionPhase.RANGE_PICKED
            and state.candidate_start is not None
            and state.candidate_end is not None
        )

    def apply(self) -> DateRange:
        """Commit the candidate range after validating it once more.

        Availability may have been reloaded since the candidate was picked, so the
        full night scan and stay-length check run again. On failure the state is
        left untouched and the error propagates.
        """
        if not self.can_apply:
            raise InvalidDateRange("Select a check-in and a check-out date first")
        date_range = DateRange(self.state.candidate_start, self.state.candidate_end)
        bounds = validate_range(self._record, date_range, loading=self._loading)
        self.state.committed_range = date_range
        self.state.active_min_stay = bounds.min_stay
        self.state.active_max_stay = bounds.max_stay
        self.state.phase = SelectionPhase.COMMITTED
        self.state.notice = None
        logger.debug("Committed %s → %s", date_range.check_in, date_range.check_out)
        return date_range

    def reset(self) -> None:
        self.state.candidate_start = None
        self.state.candidate_end = None
        self.state.active_min_stay = None
        self.state.active_max_stay = None
        self.state.phase = SelectionPhase.NO_SELECTION
        self.state.notice = None

    def _pick_start(self, start: str) -> None:
        bounds = resolve_stay_bounds(self._record, start)
        self.state.candidate_start = start
        self.state.candidate_end = None
        self.state.active_min_stay = bounds.min_stay
        self.state.active_max_stay = bounds.max_stay
        self.state.phase = SelectionPhase.START_PICKED
        self.state.notice = None

    def _pick_range(self, start: str, end: str) -> TapOutcome:
        # Both ends must be selectable days; the start may have moved when the tap swapped roles.
        if self.is_hard_unavailable(start) or self.is_hard_unavailable(end):
            return TapOutcome.HARD_UNAVAILABLE
        if is_checkout_blocked_by_rules(self._record, start, end):
            return TapOutcome.RULES_BLOCKED
        bounds = resolve_stay_bounds(self._record, start)
        self.state.candidate_start = start
        self.state.candidate_end = end
        self.state.active_min_stay = bounds.min_stay
        self.state.active_max_stay = bounds.max_stay
        self.state.phase = SelectionPhase.RANGE_PICKED
        return TapOutcome.RANGE_PICKED


def _as_key(day: Union[str, date]) -> str:
    return ymd(parse_iso(day))
