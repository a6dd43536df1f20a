"""Keep a calendar selection in step with debounced availability reloads."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from stay_engine.availability.models import CalendarWindow
from stay_engine.errors import StayEngineError
from stay_engine.pricing.models import DateRange
from stay_engine.selection.state import CalendarSelection

from .availability_service import AvailabilityService
from .loader import LatestOnlyLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CalendarParams:
    property_id: str
    room_type_id: Optional[str] = None
    currency: Optional[str] = None


class CalendarSession:
    """Owns one :class:`CalendarSelection` and the loads that feed it.

    Days stay hard-unavailable from the moment a reload starts until the newest
    reload finishes. A failed reload leaves no availability at all, so nothing can
    be selected until the user triggers another load.
    """

    def __init__(self, service: AvailabilityService, *, debounce_s: Optional[float] = None) -> None:
        self.service = service
        self.selection = CalendarSelection(loading=True)
        self.window: Optional[CalendarWindow] = None
        self._loader: LatestOnlyLoader[CalendarParams, CalendarWindow] = LatestOnlyLoader(
            self._fetch,
            debounce_s=service.settings.debounce_s if debounce_s is None else debounce_s,
        )

    async def _fetch(self, params: CalendarParams) -> CalendarWindow:
        return await self.service.calendar(
            params.property_id,
            room_type_id=params.room_type_id,
            currency=params.currency,
        )

    async def open(self, params: CalendarParams, incoming: Optional[DateRange] = None) -> CalendarSelection:
        """First load; validates ``incoming`` against the loaded availability."""
        window = await self.reload(params)
        if window is not None:
            self.selection = CalendarSelection.mount(window.record, incoming)
        elif incoming is not None and not self.selection.loading:
            # failed load: nothing is bookable, so the incoming range is dropped
            self.selection = CalendarSelection.mount(None, incoming)
        return self.selection

    async def reload(self, params: CalendarParams) -> Optional[CalendarWindow]:
        self.selection.begin_refresh()
        try:
            window = await self._loader.load(params)
        except StayEngineError as exc:
            logger.warning("Calendar availability failed for %s: %s", params.property_id, exc)
            self.window = None
            self.selection.finish_refresh(None)
            return None
        if window is None:
            return None
        self.window = window
        self.selection.finish_refresh(window.record)
        return window
