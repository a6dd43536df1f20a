"""Error taxonomy for availability lookups, quoting and date selection."""
from __future__ import annotations

from typing import Sequence


class StayEngineError(Exception):
    """Base class for every error raised by the engine."""


class UpstreamError(StayEngineError):
    """Raised when the PMS answers with a non-2xx status or cannot be reached.

    ``status`` is ``0`` for transport failures (DNS, timeouts, resets).
    """

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"Upstream availability request failed ({status})")
        self.status = status
        self.body = body


class MalformedUpstreamResponse(StayEngineError):
    """Raised when a successful upstream response is not valid JSON."""

    def __init__(self, body: str = "") -> None:
        super().__init__("Upstream availability response could not be parsed")
        self.body = body


class InvalidDateRange(StayEngineError, ValueError):
    """Raised for a checkout on or before check-in, or an unparseable date."""


class StayRuleViolation(StayEngineError):
    def __init__(self, nights: int, min_stay: int, max_stay: int) -> None:
        if nights < min_stay:
            message = f"Minimum stay for this start date is {min_stay} night{'s' if min_stay > 1 else ''}."
        else:
            message = f"Maximum stay for this start date is {max_stay} nights."
        super().__init__(message)
        self.nights = nights
        self.min_stay = min_stay
        self.max_stay = max_stay


class GapInAvailability(StayEngineError):
    def __init__(self, nights: Sequence[str]) -> None:
        super().__init__(
            "Selected dates include at least one unavailable night: " + ", ".join(nights)
        )
        self.nights = list(nights)


class PriceAggregationError(StayEngineError):
    """Raised when a record carries no usable nightly price data at all."""


class QuoteUnavailableError(StayEngineError):
    """Raised when a quote that is not bookable is handed to payment."""

    def __init__(self, reason_code: str) -> None:
        super().__init__(f"Quote unavailable: {reason_code}")
        self.reason_code = reason_code
