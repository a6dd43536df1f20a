"""Combine a nightly aggregate with secondary fees into a bookable quote."""
from __future__ import annotations

import logging

from stay_engine.availability.models import RoomAvailabilityRecord
from stay_engine.utils.money import ZERO, quantize_amount, sum_amounts

from .models import DateRange, FinalizedQuote, NightlyAggregate, Quote

logger = logging.getLogger(__name__)


def finalize_quote(
    record: RoomAvailabilityRecord,
    date_range: DateRange,
    aggregate: NightlyAggregate,
    *,
    pet: bool = False,
) -> FinalizedQuote:
    """Attach pet, cleaning and VAT amounts and decide whether the quote is bookable.

    The pet fee only applies when the pet option is selected. ``available`` is
    false unless every night was available and the room subtotal is positive;
    the displayed total is still filled in so the caller can show it.
    """
    currency = record.currency_code
    room_subtotal = quantize_amount(aggregate.room_subtotal, currency)
    pet_fee = quantize_amount(record.pet_fee_amount if pet else ZERO, currency)
    cleaning_fee = quantize_amount(record.cleaning_fee_amount, currency)
    vat = quantize_amount(record.vat_amount, currency)

    quote = Quote(
        room_subtotal=room_subtotal,
        pet_fee=pet_fee,
        cleaning_fee=cleaning_fee,
        vat=vat,
        grand_total=sum_amounts((room_subtotal, pet_fee, cleaning_fee, vat)),
        nights=aggregate.nights,
        currency=currency,
    )

    reason = None
    if not aggregate.all_nights_available:
        reason = "unavailable-nights"
    elif room_subtotal <= 0:
        reason = "no-price"
    available = reason is None
    if not available:
        logger.info(
            "Quote for %s %s → %s not bookable (%s)",
            record.room_type_id,
            date_range.check_in,
            date_range.check_out,
            reason,
        )
    return FinalizedQuote(
        quote=quote,
        available=available,
        date_range=date_range,
        room_type_id=record.room_type_id,
        reason=reason,
    )
