"""Stay rules, nightly price aggregation and quote finalization."""

from .aggregator import aggregate, ensure_no_gaps, unavailable_nights
from .handoff import GuestCounts, PaymentSubmission, build_booking_params, submit_for_payment
from .models import DateRange, FinalizedQuote, NightlyAggregate, Quote, StayBounds
from .quote import finalize_quote
from .stay_rules import check_stay_rules, resolve_stay_bounds

__all__ = [
    "DateRange",
    "FinalizedQuote",
    "GuestCounts",
    "NightlyAggregate",
    "PaymentSubmission",
    "Quote",
    "StayBounds",
    "aggregate",
    "build_booking_params",
    "check_stay_rules",
    "ensure_no_gaps",
    "finalize_quote",
    "resolve_stay_bounds",
    "submit_for_payment",
    "unavailable_nights",
]
