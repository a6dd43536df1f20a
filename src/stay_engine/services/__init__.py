"""Service layer over the upstream PMS availability API."""

from .availability_client import AvailabilityClient
from .availability_service import AvailabilityService, QuoteRequest, QuoteResult
from .calendar_session import CalendarParams, CalendarSession
from .loader import LatestOnlyLoader

__all__ = [
    "AvailabilityClient",
    "AvailabilityService",
    "CalendarParams",
    "CalendarSession",
    "LatestOnlyLoader",
    "QuoteRequest",
    "QuoteResult",
]
