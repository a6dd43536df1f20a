from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.errors import GapInAvailability, InvalidDateRange
from stay_engine.pricing import DateRange
from stay_engine.selection import (
    CalendarSelection,
    DayStatus,
    SelectionNotice,
    SelectionPhase,
    TapOutcome,
    is_checkout_blocked_by_rules,
    is_hard_unavailable,
)
from stay_engine.utils.dates import night_keys


def _record(unavailable: tuple[str, ...] = ("2025-07-10",), **overrides) -> RoomAvailabilityRecord:
    nights = night_keys("2025-07-01", "2025-07-21")
    params = {
        "room_type_id": "ROOM-A",
        "room_type_name": "Lakeview Suite",
        "currency_code": "CAD",
        "daily_prices": {night: Decimal("100") for night in nights},
        "availability": {night: night not in unavailable for night in nights},
    }
    params.update(overrides)
    return RoomAvailabilityRecord(**params)


def test_committed_range_round_trips_tapped_dates():
    selection = CalendarSelection(_record())

    assert selection.tap(date(2025, 7, 1)) is TapOutcome.START_PICKED
    assert selection.tap("2025-07-03") is TapOutcome.RANGE_PICKED
    committed = selection.apply()

    assert committed == DateRange("2025-07-01", "2025-07-03")
    assert selection.committed_range.to_dict() == {"checkIn": "2025-07-01", "checkOut": "2025-07-03"}
    assert selection.phase is SelectionPhase.COMMITTED


def test_min_stay_blocks_short_checkout():
    selection = CalendarSelection(_record(min_stay_by_date={"2025-07-01": 3}))

    selection.tap("2025-07-01")
    assert selection.state.active_min_stay == 3

    assert selection.tap("2025-07-03") is TapOutcome.RULES_BLOCKED
    assert selection.phase is SelectionPhase.START_PICKED
    assert selection.state.candidate_end is None
    assert selection.day_status("2025-07-03") is DayStatus.RULES_BLOCKED

    assert selection.tap("2025-07-04") is TapOutcome.RANGE_PICKED


@pytest.mark.parametrize(("min_stay", "outcome"), [(1, TapOutcome.RANGE_PICKED), (2, TapOutcome.RULES_BLOCKED)])
def test_single_night_accepted_only_when_min_stay_is_one(min_stay, outcome):
    selection = CalendarSelection(_record(default_min_stay=min_stay))

    selection.tap("2025-07-01")

    assert selection.tap("2025-07-02") is outcome


def test_tapping_start_again_selects_following_night():
    selection = CalendarSelection(_record())

    selection.tap("2025-07-04")

    assert selection.tap("2025-07-04") is TapOutcome.RANGE_PICKED
    assert (selection.state.candidate_start, selection.state.candidate_end) == ("2025-07-04", "2025-07-05")


def test_max_stay_is_inclusive():
    selection = CalendarSelection(_record(max_stay_by_date={"2025-07-01": 3}))
    selection.tap("2025-07-01")

    assert selection.tap("2025-07-05") is TapOutcome.RULES_BLOCKED
    assert selection.tap("2025-07-04") is TapOutcome.RANGE_PICKED


def test_hard_unavailable_and_rules_blocked_stay_distinct():
    record = _record()
    selection = CalendarSelection(record)

    assert selection.tap("2025-07-10") is TapOutcome.HARD_UNAVAILABLE
    assert selection.phase is SelectionPhase.NO_SELECTION

    selection.tap("2025-07-08")
    assert selection.day_status("2025-07-10") is DayStatus.HARD_UNAVAILABLE
    assert selection.day_status("2025-07-12") is DayStatus.RULES_BLOCKED
    assert selection.day_status("2025-07-09") is DayStatus.SELECTABLE

    assert selection.tap("2025-07-12") is TapOutcome.RULES_BLOCKED
    assert selection.tap("2025-07-10") is TapOutcome.HARD_UNAVAILABLE
    assert selection.phase is SelectionPhase.START_PICKED

    assert is_hard_unavailable(record, "2025-07-10")
    assert not is_hard_unavailable(record, "2025-07-12")
    assert is_checkout_blocked_by_rules(record, "2025-07-08", "2025-07-12")
    assert not is_checkout_blocked_by_rules(record, "2025-07-08", "2025-07-10")


def test_checkout_rules_need_a_start():
    record = _record()

    assert not is_checkout_blocked_by_rules(record, None, "2025-07-03")
    assert is_checkout_blocked_by_rules(record, "2025-07-03", "2025-07-03")
    assert is_checkout_blocked_by_rules(None, "2025-07-01", "2025-07-03")


def test_tap_before_start_swaps_roles():
    selection = CalendarSelection(_record())

    selection.tap("2025-07-04")

    assert selection.tap("2025-07-02") is TapOutcome.RANGE_PICKED
    assert (selection.state.candidate_start, selection.state.candidate_end) == ("2025-07-02", "2025-07-04")


def test_swapped_range_still_checks_gaps():
    selection = CalendarSelection(_record())

    selection.tap("2025-07-12")

    assert selection.tap("2025-07-08") is TapOutcome.RULES_BLOCKED
    assert selection.state.candidate_start == "2025-07-12"


def test_days_are_hard_unavailable_while_loading():
    record = _record()
    selection = CalendarSelection(record)

    selection.begin_refresh()
    assert selection.tap("2025-07-01") is TapOutcome.HARD_UNAVAILABLE
    assert selection.day_status("2025-07-01") is DayStatus.HARD_UNAVAILABLE

    selection.finish_refresh(record)
    assert selection.tap("2025-07-01") is TapOutcome.START_PICKED


def test_apply_revalidates_against_refreshed_availability():
    selection = CalendarSelection(_record())
    selection.tap("2025-07-01")
    selection.tap("2025-07-04")

    selection.finish_refresh(_record(unavailable=("2025-07-02",)))

    with pytest.raises(GapInAvailability):
        selection.apply()
    assert selection.committed_range is None
    assert selection.phase is SelectionPhase.RANGE_PICKED


def test_apply_while_loading_fails_closed():
    selection = CalendarSelection(_record())
    selection.tap("2025-07-01")
    selection.tap("2025-07-03")

    selection.begin_refresh()

    with pytest.raises(GapInAvailability):
        selection.apply()


def test_apply_needs_a_complete_range():
    selection = CalendarSelection(_record())
    selection.tap("2025-07-01")

    assert selection.can_apply is False
    with pytest.raises(InvalidDateRange):
        selection.apply()


def test_reset_clears_candidates_but_keeps_commit():
    selection = CalendarSelection(_record())
    selection.tap("2025-07-01")
    selection.tap("2025-07-03")
    committed = selection.apply()

    assert selection.tap("2025-07-12") is TapOutcome.START_PICKED
    assert selection.committed_range == committed

    selection.reset()

    assert selection.phase is SelectionPhase.NO_SELECTION
    assert selection.state.candidate_start is None
    assert selection.state.candidate_end is None
    assert selection.state.active_min_stay is None
    assert selection.committed_range == committed


def test_incoming_range_with_unavailable_night_is_not_committed():
    incoming = DateRange("2025-07-08", "2025-07-12")

    selection = CalendarSelection.mount(_record(), incoming)

    assert selection.phase is SelectionPhase.NO_SELECTION
    assert selection.committed_range is None
    assert selection.state.notice is SelectionNotice.PREVIOUS_SELECTION_UNAVAILABLE


def test_incoming_range_breaking_stay_rules_is_not_committed():
    incoming = DateRange("2025-07-01", "2025-07-02")

    selection = CalendarSelection.mount(_record(default_min_stay=2), incoming)

    assert selection.phase is SelectionPhase.NO_SELECTION
    assert selection.state.notice is SelectionNotice.PREVIOUS_SELECTION_INVALID


def test_valid_incoming_range_is_committed_on_mount():
    incoming = DateRange("2025-07-01", "2025-07-04")

    selection = CalendarSelection.mount(_record(default_min_stay=2, default_max_stay=7), incoming)

    assert selection.phase is SelectionPhase.COMMITTED
    assert selection.committed_range == incoming
    assert (selection.state.active_min_stay, selection.state.active_max_stay) == (2, 7)


def test_incoming_range_without_availability_is_not_committed():
    selection = CalendarSelection.mount(None, DateRange("2025-07-01", "2025-07-03"))

    assert selection.phase is SelectionPhase.NO_SELECTION
    assert selection.state.notice is SelectionNotice.PREVIOUS_SELECTION_UNAVAILABLE


def test_reset_clears_stale_notice():
    selection = CalendarSelection.mount(_record(), DateRange("2025-07-08", "2025-07-12"))
    assert selection.state.notice is SelectionNotice.PREVIOUS_SELECTION_UNAVAILABLE

    selection.reset()

    assert selection.state.notice is None
    assert selection.tap("2025-07-01") is TapOutcome.START_PICKED
