"""Hand a finalized quote to the booking/payment flow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from stay_engine.errors import QuoteUnavailableError

from .models import FinalizedQuote

logger = logging.getLogger(__name__)

PaymentTokenizer = Callable[[FinalizedQuote], Awaitable[str]]


@dataclass(slots=True)
class GuestCounts:
    adults: int = 1
    children: int = 0
    infants: int = 0
    pet: bool = False


@dataclass(slots=True)
class PaymentSubmission:
    token: str
    params: dict[str, str]
    guest_checkout: bool


def build_booking_params(
    finalized: FinalizedQuote,
    *,
    property_id: str,
    guests: GuestCounts,
    display_name: Optional[str] = None,
    guest_checkout: bool = False,
) -> dict[str, str]:
    """Query parameters understood by the payment page."""
    quote = finalized.quote
    params = {
        "hotelId": property_id,
        "hotelNo": property_id,
        "roomTypeId": finalized.room_type_id,
        "startTime": finalized.date_range.check_in,
        "endTime": finalized.date_range.check_out,
        "adults": str(guests.adults),
        "children": str(guests.children),
        "infants": str(guests.infants),
        "pets": "1" if guests.pet else "0",
        "currency": quote.currency,
        "total": str(quote.room_subtotal),
        "petFee": str(quote.pet_fee),
        "cleaningFee": str(quote.cleaning_fee),
        "vat": str(quote.vat),
        "grandTotal": str(quote.grand_total),
    }
    if display_name:
        params["name"] = display_name
    if guest_checkout:
        params["guest"] = "1"
    return params


async def submit_for_payment(
    finalized: FinalizedQuote,
    tokenize: PaymentTokenizer,
    *,
    property_id: str,
    guests: GuestCounts,
    is_authenticated: bool,
    guest_checkout: bool = False,
    display_name: Optional[str] = None,
) -> PaymentSubmission:
    """Tokenize payment for a bookable quote.

    Raises :class:`QuoteUnavailableError` when the quote is not bookable or the
    caller is neither signed in nor continuing as a guest. Tokenizer failures
    propagate unchanged.
    """
    if not finalized.available:
        raise QuoteUnavailableError(finalized.reason or "unavailable")
    if not is_authenticated and not guest_checkout:
        raise QuoteUnavailableError("login-required")

    params = build_booking_params(
        finalized,
        property_id=property_id,
        guests=guests,
        display_name=display_name,
        guest_checkout=guest_checkout and not is_authenticated,
    )
    logger.info(
        "Submitting %s %s → %s for payment (%s %s)",
        finalized.room_type_id,
        finalized.date_range.check_in,
        finalized.date_range.check_out,
        finalized.quote.grand_total,
        finalized.quote.currency,
    )
    token = await tokenize(finalized)
    return PaymentSubmission(token=token, params=params, guest_checkout=guest_checkout and not is_authenticated)
